"""
Artifact factories and per-collection naming rules.

Each collection has its own convention for the display name:

- scripts always carry the ``.nut`` extension
- weapons are stored without ``.txt``
- UI files are stored without ``.res`` / ``.menu`` (the type is a field)
- localization files are stored as a base name, without ``_<language>.txt``
"""

import inspect
import re
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from .models import (
    SUPPORTED_LANGUAGES,
    Artifact,
    ArtifactKind,
    LocalizationFile,
    ScriptFile,
    UIFile,
    UIFileType,
    WeaponFile,
    utc_now,
)

SCRIPT_EXTENSION = ".nut"

_UI_EXTENSION_RE = re.compile(r"\.(res|menu)$")
_LANGUAGE_SUFFIX_RE = re.compile(r"_[a-z]+\.txt$")
_TXT_EXTENSION_RE = re.compile(r"\.txt$")

WEAPON_TEMPLATE = """WeaponData
{{
    // General
    "printname"                   "{name}"
    "shortprintname"              "{name}"
    "description"                 "{name}_DESC"
    "weapon_type_flags"           "WPT_PRIMARY"
}}
"""

WEAPON_TEMPLATE_WITH_BASE = """#base "{base}.txt"

WeaponData
{{
    // Overrides for {base}
    "printname"                   "{name}"
    "shortprintname"              "{name}"
}}
"""

UI_RES_TEMPLATE = """"resource/ui/{name}.res"
{{
}}
"""

UI_MENU_TEMPLATE = """"resource/ui/menus/{name}.menu"
{{
    menu
    {{
        ControlName               Frame
        xpos                      0
        ypos                      0
        zpos                      3
        wide                      f0
        tall                      f0
        autoResize                0
        visible                   1
        enabled                   1
    }}
}}
"""


def normalize_script_name(name: str) -> str:
    """Ensure a script name ends with ``.nut``."""
    return name if name.endswith(SCRIPT_EXTENSION) else f"{name}{SCRIPT_EXTENSION}"


def normalize_weapon_name(name: str) -> str:
    """Drop a trailing ``.txt`` from a weapon name."""
    return name[: -len(".txt")] if name.endswith(".txt") else name


def normalize_ui_name(name: str) -> str:
    """Drop a trailing ``.res`` or ``.menu`` from a UI file name."""
    return _UI_EXTENSION_RE.sub("", name)


def normalize_localization_name(name: str) -> str:
    """Drop a trailing ``_<language>.txt`` (or bare ``.txt``) from a localization name."""
    return _TXT_EXTENSION_RE.sub("", _LANGUAGE_SUFFIX_RE.sub("", name))


NAME_POLICIES: Dict[ArtifactKind, Callable[[str], str]] = {
    ArtifactKind.SCRIPT: normalize_script_name,
    ArtifactKind.WEAPON: normalize_weapon_name,
    ArtifactKind.UI: normalize_ui_name,
    ArtifactKind.LOCALIZATION: normalize_localization_name,
}


def normalize_name(kind: ArtifactKind, name: str) -> str:
    """Apply the naming rule of ``kind`` to ``name``."""
    return NAME_POLICIES[kind](name)


def generate_artifact_id(kind: ArtifactKind) -> str:
    """Create a fresh artifact id, e.g. ``weapon_3f2a9c...``."""
    return f"{kind.value}_{uuid.uuid4().hex}"


def new_script(
    name: str,
    nodes: Optional[Iterable[Dict[str, Any]]] = None,
    connections: Optional[Iterable[Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> ScriptFile:
    """Create a script artifact (empty graph by default)."""
    now = now or utc_now()
    return ScriptFile(
        id=generate_artifact_id(ArtifactKind.SCRIPT),
        name=normalize_script_name(name),
        created_at=now,
        modified_at=now,
        nodes=list(nodes or []),
        connections=list(connections or []),
    )


def new_weapon(
    name: str,
    base_weapon: Optional[str] = None,
    content: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WeaponFile:
    """Create a weapon artifact, filling ``content`` from the KeyValue template."""
    now = now or utc_now()
    clean_name = normalize_weapon_name(name)
    if content is None:
        short_name = clean_name.rsplit("/", 1)[-1]
        if base_weapon:
            content = WEAPON_TEMPLATE_WITH_BASE.format(name=short_name, base=base_weapon)
        else:
            content = WEAPON_TEMPLATE.format(name=short_name)
    return WeaponFile(
        id=generate_artifact_id(ArtifactKind.WEAPON),
        name=clean_name,
        created_at=now,
        modified_at=now,
        content=content,
        base_weapon=base_weapon,
    )


def new_ui_file(
    name: str,
    file_type: UIFileType | str = UIFileType.RES,
    content: Optional[str] = None,
    now: Optional[datetime] = None,
) -> UIFile:
    """Create a UI artifact of the given type (``res`` or ``menu``)."""
    now = now or utc_now()
    file_type = UIFileType(file_type)
    clean_name = normalize_ui_name(name)
    if content is None:
        template = UI_MENU_TEMPLATE if file_type is UIFileType.MENU else UI_RES_TEMPLATE
        content = template.format(name=clean_name.rsplit("/", 1)[-1])
    return UIFile(
        id=generate_artifact_id(ArtifactKind.UI),
        name=clean_name,
        created_at=now,
        modified_at=now,
        file_type=file_type,
        content=content,
    )


def new_localization_file(
    name: str,
    language: str = "english",
    tokens: Optional[Dict[str, str]] = None,
    now: Optional[datetime] = None,
) -> LocalizationFile:
    """Create a localization artifact for one of ``SUPPORTED_LANGUAGES``."""
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported localization language '{language}', expected one of {SUPPORTED_LANGUAGES}"
        )
    now = now or utc_now()
    return LocalizationFile(
        id=generate_artifact_id(ArtifactKind.LOCALIZATION),
        name=normalize_localization_name(name),
        created_at=now,
        modified_at=now,
        language=language,
        tokens=dict(tokens or {}),
    )


ARTIFACT_FACTORIES: Dict[ArtifactKind, Callable[..., Artifact]] = {
    ArtifactKind.SCRIPT: new_script,
    ArtifactKind.WEAPON: new_weapon,
    ArtifactKind.UI: new_ui_file,
    ArtifactKind.LOCALIZATION: new_localization_file,
}


def new_artifact(kind: ArtifactKind, name: str, **payload: Any) -> Artifact:
    """Create an artifact of ``kind``; ``payload`` goes to the kind's factory.

    Raises:
        ValueError: If ``payload`` has fields the kind does not take
            or values the factory rejects
    """
    factory = ARTIFACT_FACTORIES[kind]
    accepted = set(inspect.signature(factory).parameters) - {"name"}
    unknown = set(payload) - accepted
    if unknown:
        raise ValueError(f"Fields {sorted(unknown)} do not apply to {kind.value} artifacts")
    return factory(name, **payload)
