"""
Validation of the project wire format.

Defines the JSON keys of ``.r5vproj`` files and checks parsed data before a
document is built from it. Validators return lists of error messages; an
empty list means the data can be turned into a document.
"""

from datetime import datetime
from typing import Any, Dict, List, cast

from .models import SUPPORTED_LANGUAGES, ArtifactKind, UIFileType

FORMAT_VERSION = "1.0.0"
"""Version written into the ``version`` field of new files."""

SUPPORTED_MAJOR_VERSION = 1

COLLECTION_KEYS: Dict[ArtifactKind, str] = {
    ArtifactKind.SCRIPT: "scriptFiles",
    ArtifactKind.WEAPON: "weaponFiles",
    ArtifactKind.UI: "uiFiles",
    ArtifactKind.LOCALIZATION: "localizationFiles",
}

FOLDER_KEYS: Dict[ArtifactKind, str] = {
    ArtifactKind.SCRIPT: "folders",
    ArtifactKind.WEAPON: "weaponFolders",
    ArtifactKind.UI: "uiFolders",
    ArtifactKind.LOCALIZATION: "localizationFolders",
}

ACTIVE_KEYS: Dict[ArtifactKind, str] = {
    ArtifactKind.SCRIPT: "activeScriptFile",
    ArtifactKind.WEAPON: "activeWeaponFile",
    ArtifactKind.UI: "activeUIFile",
    ArtifactKind.LOCALIZATION: "activeLocalizationFile",
}

ACTIVE_COLLECTION_KEY = "activeFileType"


def is_timestamp(value: Any) -> bool:
    """Check that ``value`` is an ISO-8601 timestamp string."""
    if not isinstance(value, str):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in cast(List[Any], value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ProjectSchema:
    """Validation rules for serialized projects."""

    REQUIRED_ROOT_FIELDS = {"version", "data"}
    REQUIRED_DATA_FIELDS = {"metadata", "settings", *COLLECTION_KEYS.values()}
    REQUIRED_METADATA_FIELDS = {"name", "version", "createdAt", "modifiedAt", "editorVersion"}
    REQUIRED_ARTIFACT_FIELDS = {"id", "name", "createdAt", "modifiedAt"}
    REQUIRED_PAYLOAD_FIELDS: Dict[ArtifactKind, set[str]] = {
        ArtifactKind.SCRIPT: {"nodes", "connections"},
        ArtifactKind.WEAPON: {"content"},
        ArtifactKind.UI: {"fileType", "content"},
        ArtifactKind.LOCALIZATION: {"language", "tokens"},
    }

    @staticmethod
    def validate_root(data: Any) -> List[str]:
        """Validate the ``{version, data}`` envelope."""
        if not isinstance(data, dict):
            return ["Project file must contain a JSON object"]
        root = cast(Dict[str, Any], data)

        errors: List[str] = []
        missing = ProjectSchema.REQUIRED_ROOT_FIELDS - root.keys()
        if missing:
            errors.append(f"Missing required fields: {sorted(missing)}")
            return errors

        version = root["version"]
        if not isinstance(version, str) or not version:
            errors.append("'version' must be a non-empty string")
        else:
            major = version.split(".", 1)[0]
            if not major.isdigit():
                errors.append(f"'version' is not a valid format version: {version!r}")
            elif int(major) > SUPPORTED_MAJOR_VERSION:
                errors.append(f"Unsupported project format version {version}")

        if not isinstance(root["data"], dict):
            errors.append("'data' must be an object")
        return errors

    @staticmethod
    def validate_metadata(metadata: Any) -> List[str]:
        """Validate the ``metadata`` block."""
        if not isinstance(metadata, dict):
            return ["'metadata' must be an object"]
        meta = cast(Dict[str, Any], metadata)

        errors: List[str] = []
        missing = ProjectSchema.REQUIRED_METADATA_FIELDS - meta.keys()
        if missing:
            errors.append(f"Metadata missing required fields: {sorted(missing)}")
            return errors

        for key in ("name", "version", "editorVersion"):
            if not isinstance(meta[key], str):
                errors.append(f"Metadata '{key}' must be a string")
        for key in ("description", "author"):
            if meta.get(key) is not None and not isinstance(meta[key], str):
                errors.append(f"Metadata '{key}' must be a string")
        for key in ("createdAt", "modifiedAt"):
            if not is_timestamp(meta[key]):
                errors.append(f"Metadata '{key}' is not an ISO timestamp: {meta[key]!r}")
        return errors

    @staticmethod
    def validate_settings(settings: Any) -> List[str]:
        """Validate the ``settings`` block (every field is optional)."""
        if not isinstance(settings, dict):
            return ["'settings' must be an object"]
        values = cast(Dict[str, Any], settings)

        errors: List[str] = []
        for kind in ArtifactKind:
            folder_key = FOLDER_KEYS[kind]
            if folder_key in values and not _is_str_list(values[folder_key]):
                errors.append(f"Settings '{folder_key}' must be an array of strings")
            active_key = ACTIVE_KEYS[kind]
            if values.get(active_key) is not None and not isinstance(values[active_key], str):
                errors.append(f"Settings '{active_key}' must be a string")

        active_type = values.get(ACTIVE_COLLECTION_KEY)
        valid_types = {kind.value for kind in ArtifactKind}
        if active_type is not None and (
            not isinstance(active_type, str) or active_type not in valid_types
        ):
            errors.append(
                f"Settings '{ACTIVE_COLLECTION_KEY}' must be one of {sorted(valid_types)}, got {active_type!r}"
            )

        position = values.get("canvasPosition")
        if position is not None and not (
            isinstance(position, dict)
            and all(_is_number(cast(Dict[str, Any], position).get(axis, 0)) for axis in ("x", "y"))
        ):
            errors.append("Settings 'canvasPosition' must be an object with numeric 'x' and 'y'")
        if "canvasZoom" in values and not _is_number(values["canvasZoom"]):
            errors.append(f"Settings 'canvasZoom' must be a number, got {values['canvasZoom']!r}")
        if values.get("lastOpenedNode") is not None and not isinstance(values["lastOpenedNode"], str):
            errors.append("Settings 'lastOpenedNode' must be a string")

        mod = values.get("mod")
        if mod is not None:
            if not isinstance(mod, dict):
                errors.append("Settings 'mod' must be an object")
            else:
                refs = cast(Dict[str, Any], mod).get("localizationFiles", [])
                if not isinstance(refs, list) or not all(
                    isinstance(ref, dict) and isinstance(ref.get("path"), str)
                    for ref in cast(List[Any], refs)
                ):
                    errors.append("Mod 'localizationFiles' must be an array of {path, enabled}")
        return errors

    @staticmethod
    def validate_artifact(kind: ArtifactKind, artifact: Any) -> List[str]:
        """Validate one serialized artifact of ``kind``."""
        if not isinstance(artifact, dict):
            return ["must be an object"]
        item = cast(Dict[str, Any], artifact)

        errors: List[str] = []
        required = ProjectSchema.REQUIRED_ARTIFACT_FIELDS | ProjectSchema.REQUIRED_PAYLOAD_FIELDS[kind]
        missing = required - item.keys()
        if missing:
            errors.append(f"missing required fields: {sorted(missing)}")
            return errors

        if not isinstance(item["id"], str) or not item["id"]:
            errors.append(f"'id' must be a non-empty string, got {item['id']!r}")
        if not isinstance(item["name"], str):
            errors.append("'name' must be a string")
        for key in ("createdAt", "modifiedAt"):
            if not is_timestamp(item[key]):
                errors.append(f"'{key}' is not an ISO timestamp: {item[key]!r}")

        if kind is ArtifactKind.SCRIPT:
            for key in ("nodes", "connections"):
                if not isinstance(item[key], list):
                    errors.append(f"'{key}' must be an array")
        elif kind is ArtifactKind.WEAPON:
            if not isinstance(item["content"], str):
                errors.append("'content' must be a string")
            if item.get("baseWeapon") is not None and not isinstance(item["baseWeapon"], str):
                errors.append("'baseWeapon' must be a string")
        elif kind is ArtifactKind.UI:
            valid_types = {file_type.value for file_type in UIFileType}
            if not isinstance(item["fileType"], str) or item["fileType"] not in valid_types:
                errors.append(f"'fileType' must be one of {sorted(valid_types)}, got {item['fileType']!r}")
            if not isinstance(item["content"], str):
                errors.append("'content' must be a string")
        elif kind is ArtifactKind.LOCALIZATION:
            if item["language"] not in SUPPORTED_LANGUAGES:
                errors.append(f"unsupported language {item['language']!r}")
            tokens = item["tokens"]
            if not isinstance(tokens, dict) or not all(
                isinstance(value, str) for value in cast(Dict[str, Any], tokens).values()
            ):
                errors.append("'tokens' must be an object of strings")
        return errors

    @staticmethod
    def validate_collection(kind: ArtifactKind, artifacts: Any) -> List[str]:
        """Validate one collection list, including id uniqueness."""
        key = COLLECTION_KEYS[kind]
        if not isinstance(artifacts, list):
            return [f"'{key}' must be an array"]

        errors: List[str] = []
        seen_ids: set[str] = set()
        for idx, artifact in enumerate(cast(List[Any], artifacts)):
            artifact_errors = ProjectSchema.validate_artifact(kind, artifact)
            if artifact_errors:
                errors.extend(f"{key}[{idx}]: {err}" for err in artifact_errors)
                continue
            artifact_id = artifact["id"]
            if artifact_id in seen_ids:
                errors.append(f"{key}[{idx}]: duplicate id '{artifact_id}'")
            seen_ids.add(artifact_id)

        if kind is ArtifactKind.SCRIPT and not artifacts:
            errors.append(f"'{key}' must contain at least one script")
        return errors

    @staticmethod
    def validate_project(data: Any) -> List[str]:
        """Validate a complete serialized project.

        Args:
            data: Parsed JSON (the ``{version, data}`` envelope)

        Returns:
            List of all validation errors (empty if valid)
        """
        errors = ProjectSchema.validate_root(data)
        if errors:
            return errors

        body = cast(Dict[str, Any], data["data"])
        missing = ProjectSchema.REQUIRED_DATA_FIELDS - body.keys()
        if missing:
            return [f"Project data missing required fields: {sorted(missing)}"]

        errors.extend(ProjectSchema.validate_metadata(body["metadata"]))
        errors.extend(ProjectSchema.validate_settings(body["settings"]))
        for kind, key in COLLECTION_KEYS.items():
            errors.extend(ProjectSchema.validate_collection(kind, body[key]))
        return errors
