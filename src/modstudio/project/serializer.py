"""
Conversion between ``ProjectDocument`` and the ``.r5vproj`` JSON format.

The wire format keeps the camelCase keys used by existing project files::

    {
      "version": "1.0.0",
      "data": {
        "metadata": {...},
        "settings": {"activeScriptFile": ..., "folders": [...], "mod": {...}},
        "scriptFiles": [...], "weaponFiles": [...],
        "uiFiles": [...], "localizationFiles": [...]
      }
    }

Compression is not handled here; see ``storage.py``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import orjson

from .artifacts import generate_artifact_id
from .collection import CollectionStore
from .document import ProjectDocument
from .errors import InvalidDocumentFormat
from .models import (
    DEFAULT_SCRIPT_NAME,
    EDITOR_VERSION,
    Artifact,
    ArtifactKind,
    EditorViewState,
    LocalizationFile,
    LocalizationFileRef,
    ModSettings,
    ProjectMetadata,
    ScriptFile,
    SelectionState,
    UIFile,
    UIFileType,
    WeaponFile,
)
from .schema import (
    ACTIVE_COLLECTION_KEY,
    ACTIVE_KEYS,
    COLLECTION_KEYS,
    FOLDER_KEYS,
    FORMAT_VERSION,
    ProjectSchema,
)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    return value.isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ProjectSerializer:
    """Serializes documents to and from the project wire format."""

    def __init__(self, indent: bool = True):
        """Initialize the serializer.

        Args:
            indent: Pretty-print JSON output (two-space indent)
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.indent = indent

    # === SERIALIZATION ===

    def dumps(self, document: ProjectDocument) -> bytes:
        """Serialize a document to UTF-8 JSON bytes."""
        option = orjson.OPT_INDENT_2 if self.indent else 0
        return orjson.dumps(self.to_dict(document), option=option)

    def to_dict(self, document: ProjectDocument) -> Dict[str, Any]:
        """Build the JSON-compatible ``{version, data}`` envelope."""
        data: Dict[str, Any] = {
            "metadata": self._metadata_to_dict(document.metadata),
            "settings": self._settings_to_dict(document),
        }
        for kind, key in COLLECTION_KEYS.items():
            data[key] = [self._artifact_to_dict(a) for a in document.collection(kind)]
        return {"version": FORMAT_VERSION, "data": data}

    def _metadata_to_dict(self, metadata: ProjectMetadata) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": metadata.name,
            "version": metadata.version,
            "createdAt": format_timestamp(metadata.created_at),
            "modifiedAt": format_timestamp(metadata.modified_at),
            "editorVersion": metadata.editor_version,
        }
        if metadata.description is not None:
            result["description"] = metadata.description
        if metadata.author is not None:
            result["author"] = metadata.author
        return result

    def _settings_to_dict(self, document: ProjectDocument) -> Dict[str, Any]:
        view = document.view
        settings: Dict[str, Any] = {
            "canvasPosition": {"x": view.canvas_x, "y": view.canvas_y},
            "canvasZoom": view.canvas_zoom,
        }
        if view.last_opened_node is not None:
            settings["lastOpenedNode"] = view.last_opened_node

        for kind in ArtifactKind:
            active_id = document.selection.get(kind)
            if active_id is not None:
                settings[ACTIVE_KEYS[kind]] = active_id
            settings[FOLDER_KEYS[kind]] = document.collection(kind).folders
        settings[ACTIVE_COLLECTION_KEY] = document.selection.active_collection.value

        mod = document.mod
        settings["mod"] = {
            "modId": mod.mod_id,
            "modName": mod.mod_name,
            "modDescription": mod.mod_description,
            "modVersion": mod.mod_version,
            "modAuthor": mod.mod_author,
            "localizationFiles": [
                {"path": ref.path, "enabled": ref.enabled} for ref in mod.localization_files
            ],
        }
        return settings

    def _artifact_to_dict(self, artifact: Artifact) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": artifact.id, "name": artifact.name}
        if isinstance(artifact, ScriptFile):
            result["nodes"] = artifact.nodes
            result["connections"] = artifact.connections
        elif isinstance(artifact, WeaponFile):
            if artifact.base_weapon is not None:
                result["baseWeapon"] = artifact.base_weapon
            result["content"] = artifact.content
        elif isinstance(artifact, UIFile):
            result["fileType"] = artifact.file_type.value
            result["content"] = artifact.content
        elif isinstance(artifact, LocalizationFile):
            result["language"] = artifact.language
            result["tokens"] = artifact.tokens
        result["createdAt"] = format_timestamp(artifact.created_at)
        result["modifiedAt"] = format_timestamp(artifact.modified_at)
        return result

    # === DESERIALIZATION ===

    def loads(self, raw: bytes | str) -> ProjectDocument:
        """Parse JSON bytes into a document.

        Raises:
            InvalidDocumentFormat: If the JSON is malformed or misses required data
        """
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise InvalidDocumentFormat(f"Project file is not valid JSON: {e}") from e
        return self.from_dict(payload)

    def from_dict(self, payload: Any) -> ProjectDocument:
        """Build a document from the parsed ``{version, data}`` envelope.

        Raises:
            InvalidDocumentFormat: If the data does not describe a complete project
        """
        payload = self._migrate_legacy(payload)

        errors = ProjectSchema.validate_project(payload)
        if errors:
            raise InvalidDocumentFormat("Invalid project file", errors)

        data = payload["data"]
        settings = data["settings"]
        collections = {
            kind: CollectionStore(
                kind,
                artifacts=[self._artifact_from_dict(kind, item) for item in data[key]],
                folders=settings.get(FOLDER_KEYS[kind], []),
            )
            for kind, key in COLLECTION_KEYS.items()
        }

        return ProjectDocument(
            metadata=self._metadata_from_dict(data["metadata"]),
            selection=self._selection_from_dict(settings),
            collections=collections,
            mod=self._mod_from_dict(settings.get("mod")),
            view=self._view_from_dict(settings),
        )

    def _migrate_legacy(self, payload: Any) -> Any:
        """Move single-graph projects (top-level ``nodes``/``connections``) into a script."""
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            return payload
        data: Dict[str, Any] = payload["data"]
        if COLLECTION_KEYS[ArtifactKind.SCRIPT] in data or not isinstance(data.get("nodes"), list):
            return payload

        self.logger.info("Migrating single-graph project to multi-file format")
        metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        created_at = metadata.get("createdAt") or format_timestamp(datetime.now(timezone.utc))
        script = {
            "id": generate_artifact_id(ArtifactKind.SCRIPT),
            "name": DEFAULT_SCRIPT_NAME,
            "nodes": data["nodes"],
            "connections": data.get("connections", []),
            "createdAt": created_at,
            "modifiedAt": metadata.get("modifiedAt") or created_at,
        }

        migrated = {
            key: value for key, value in data.items() if key not in ("nodes", "connections")
        }
        migrated.setdefault("settings", {})
        if isinstance(migrated["settings"], dict):
            migrated["settings"] = {**migrated["settings"], ACTIVE_KEYS[ArtifactKind.SCRIPT]: script["id"]}
        if isinstance(migrated.get("metadata"), dict):
            migrated["metadata"] = {"editorVersion": EDITOR_VERSION, **migrated["metadata"]}
        migrated[COLLECTION_KEYS[ArtifactKind.SCRIPT]] = [script]
        for kind in (ArtifactKind.WEAPON, ArtifactKind.UI, ArtifactKind.LOCALIZATION):
            migrated.setdefault(COLLECTION_KEYS[kind], [])
        return {**payload, "data": migrated}

    def _metadata_from_dict(self, data: Dict[str, Any]) -> ProjectMetadata:
        return ProjectMetadata(
            name=data["name"],
            version=data["version"],
            description=data.get("description"),
            author=data.get("author"),
            created_at=parse_timestamp(data["createdAt"]),
            modified_at=parse_timestamp(data["modifiedAt"]),
            editor_version=data["editorVersion"],
        )

    def _selection_from_dict(self, settings: Dict[str, Any]) -> SelectionState:
        selection = SelectionState(
            active_collection=ArtifactKind(settings.get(ACTIVE_COLLECTION_KEY, ArtifactKind.SCRIPT.value))
        )
        for kind, key in ACTIVE_KEYS.items():
            selection.set(kind, settings.get(key))
        return selection

    def _mod_from_dict(self, data: Optional[Dict[str, Any]]) -> ModSettings:
        if data is None:
            return ModSettings()
        defaults = ModSettings()
        return ModSettings(
            mod_id=data.get("modId", defaults.mod_id),
            mod_name=data.get("modName", defaults.mod_name),
            mod_description=data.get("modDescription", defaults.mod_description),
            mod_version=data.get("modVersion", defaults.mod_version),
            mod_author=data.get("modAuthor", defaults.mod_author),
            localization_files=[
                LocalizationFileRef(path=ref["path"], enabled=bool(ref.get("enabled", True)))
                for ref in data.get("localizationFiles", [])
            ],
        )

    def _view_from_dict(self, settings: Dict[str, Any]) -> EditorViewState:
        position = settings.get("canvasPosition") or {}
        return EditorViewState(
            canvas_x=float(position.get("x", 0.0)),
            canvas_y=float(position.get("y", 0.0)),
            canvas_zoom=float(settings.get("canvasZoom", 1.0)),
            last_opened_node=settings.get("lastOpenedNode"),
        )

    def _artifact_from_dict(self, kind: ArtifactKind, data: Dict[str, Any]) -> Artifact:
        common: Dict[str, Any] = {
            "id": data["id"],
            "name": data["name"],
            "created_at": parse_timestamp(data["createdAt"]),
            "modified_at": parse_timestamp(data["modifiedAt"]),
        }
        if kind is ArtifactKind.SCRIPT:
            nodes: List[Dict[str, Any]] = data["nodes"]
            return ScriptFile(**common, nodes=nodes, connections=data["connections"])
        if kind is ArtifactKind.WEAPON:
            return WeaponFile(**common, content=data["content"], base_weapon=data.get("baseWeapon"))
        if kind is ArtifactKind.UI:
            return UIFile(**common, file_type=UIFileType(data["fileType"]), content=data["content"])
        return LocalizationFile(**common, language=data["language"], tokens=dict(data["tokens"]))
