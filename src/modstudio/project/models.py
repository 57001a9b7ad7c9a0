"""
Data models for the project document.

Artifacts are plain dataclasses. Folder membership is encoded only in the
artifact ``name`` (``"weapons/smg/r97"``), there is no parent pointer. The
collections that own artifacts live in ``collection.py`` and the document
that ties everything together in ``document.py``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from .paths import basename, parent_of

EDITOR_VERSION = "0.1.0"
"""Version of the editor that writes project files."""

DEFAULT_PROJECT_NAME = "Untitled Project"
DEFAULT_SCRIPT_NAME = "main.nut"


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (the precision stored on disk)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class ArtifactKind(Enum):
    """The four artifact collections of a project."""

    SCRIPT = "script"
    """Visual script graphs compiled to Squirrel (.nut)."""

    WEAPON = "weapon"
    """KeyValue weapon definitions (scripts/weapons/*.txt)."""

    UI = "ui"
    """VGUI layout (.res) and menu (.menu) files."""

    LOCALIZATION = "localization"
    """Per-language token tables (resource/localization/*_<language>.txt)."""


class UIFileType(Enum):
    """File type of a UI artifact."""

    RES = "res"
    MENU = "menu"


SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "english",
    "french",
    "german",
    "italian",
    "japanese",
    "korean",
    "polish",
    "portuguese",
    "russian",
    "schinese",  # Simplified Chinese
    "spanish",
    "tchinese",  # Traditional Chinese
    "mspanish",  # Mexican Spanish
)


@dataclass
class Artifact:
    """Common fields of every artifact.

    Attributes:
        id: Stable identifier, unique within its collection, never changes
        name: Display name; ``/`` separated prefix encodes the folder
        created_at: Creation time (UTC)
        modified_at: Last modification time (UTC)
    """

    id: str
    name: str
    created_at: datetime
    modified_at: datetime

    kind: ClassVar[ArtifactKind]
    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    @property
    def folder(self) -> Optional[str]:
        """Folder containing this artifact (None at top level)."""
        return parent_of(self.name)

    @property
    def basename(self) -> str:
        """Name without the folder prefix."""
        return basename(self.name)

    def touch(self, when: Optional[datetime] = None) -> None:
        """Bump ``modified_at``."""
        self.modified_at = when or utc_now()

    @classmethod
    def check_changes(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Validate content changes before they are applied.

        Raises:
            ValueError: If a field is not editable or a value is invalid
        """
        invalid = set(changes) - cls.EDITABLE_FIELDS
        if invalid:
            raise ValueError(
                f"Fields {sorted(invalid)} cannot be edited on {cls.kind.value} artifacts"
            )
        return dict(changes)


@dataclass
class ScriptFile(Artifact):
    """A visual script graph.

    ``nodes`` and ``connections`` are opaque JSON structures owned by the
    node-graph editor; the document engine only stores them.
    """

    nodes: List[Dict[str, Any]] = field(default_factory=list)
    connections: List[Dict[str, Any]] = field(default_factory=list)

    kind: ClassVar[ArtifactKind] = ArtifactKind.SCRIPT
    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"nodes", "connections"})


@dataclass
class WeaponFile(Artifact):
    """A KeyValue weapon definition; ``name`` carries no ``.txt`` extension."""

    content: str = ""
    base_weapon: Optional[str] = None

    kind: ClassVar[ArtifactKind] = ArtifactKind.WEAPON
    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"content", "base_weapon"})

    @property
    def filename(self) -> str:
        return f"{self.basename}.txt"


@dataclass
class UIFile(Artifact):
    """A VGUI file; the extension is derived from ``file_type``."""

    file_type: UIFileType = UIFileType.RES
    content: str = ""

    kind: ClassVar[ArtifactKind] = ArtifactKind.UI
    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"content", "file_type"})

    @classmethod
    def check_changes(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        checked = super().check_changes(changes)
        if "file_type" in checked:
            checked["file_type"] = UIFileType(checked["file_type"])
        return checked

    @property
    def filename(self) -> str:
        return f"{self.basename}.{self.file_type.value}"


@dataclass
class LocalizationFile(Artifact):
    """Translation tokens for one language.

    ``name`` is the base name; the exported file is ``<name>_<language>.txt``.
    """

    language: str = "english"
    tokens: Dict[str, str] = field(default_factory=dict)

    kind: ClassVar[ArtifactKind] = ArtifactKind.LOCALIZATION
    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"tokens", "language"})

    def __post_init__(self) -> None:
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported localization language: {self.language}")

    @classmethod
    def check_changes(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        checked = super().check_changes(changes)
        if "language" in checked and checked["language"] not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported localization language: {checked['language']}")
        return checked

    @property
    def filename(self) -> str:
        return f"{self.basename}_{self.language}.txt"


ARTIFACT_TYPES: Dict[ArtifactKind, type[Artifact]] = {
    ArtifactKind.SCRIPT: ScriptFile,
    ArtifactKind.WEAPON: WeaponFile,
    ArtifactKind.UI: UIFile,
    ArtifactKind.LOCALIZATION: LocalizationFile,
}


@dataclass
class ProjectMetadata:
    """Descriptive project information stored in the file header."""

    name: str
    created_at: datetime
    modified_at: datetime
    version: str = "1.0.0"
    description: Optional[str] = None
    author: Optional[str] = None
    editor_version: str = EDITOR_VERSION

    EDITABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"name", "version", "description", "author"}
    )


@dataclass
class LocalizationFileRef:
    """Localization file reference written into the exported mod.vdf."""

    path: str
    enabled: bool = True


@dataclass
class ModSettings:
    """Mod export settings."""

    mod_id: str = "my_mod"
    mod_name: str = "My Mod"
    mod_description: str = "A custom mod created with R5V Mod Studio"
    mod_version: str = "1.0.0"
    mod_author: str = "Unknown"
    localization_files: List[LocalizationFileRef] = field(default_factory=list)


@dataclass
class EditorViewState:
    """Canvas position and zoom restored when a project is reopened."""

    canvas_x: float = 0.0
    canvas_y: float = 0.0
    canvas_zoom: float = 1.0
    last_opened_node: Optional[str] = None


@dataclass
class SelectionState:
    """Active artifact per collection plus the collection that has focus."""

    active_script: Optional[str] = None
    active_weapon: Optional[str] = None
    active_ui: Optional[str] = None
    active_localization: Optional[str] = None
    active_collection: ArtifactKind = ArtifactKind.SCRIPT

    _FIELDS: ClassVar[Dict[ArtifactKind, str]] = {
        ArtifactKind.SCRIPT: "active_script",
        ArtifactKind.WEAPON: "active_weapon",
        ArtifactKind.UI: "active_ui",
        ArtifactKind.LOCALIZATION: "active_localization",
    }

    def get(self, kind: ArtifactKind) -> Optional[str]:
        """Get the active artifact id of a collection."""
        return getattr(self, self._FIELDS[kind])

    def set(self, kind: ArtifactKind, artifact_id: Optional[str]) -> None:
        """Set the active artifact id of a collection (focus is not changed)."""
        setattr(self, self._FIELDS[kind], artifact_id)
