"""
Editor-related settings for R5V Mod Studio.
"""

from typing import TYPE_CHECKING, cast

from .types import ConfigError

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

DEFAULT_PROJECT_NAME = "Untitled Project"
DEFAULT_PROJECT_EXTENSION = ".r5vproj"


class EditorSettings:
    """Manages project editing and saving settings."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int = 0) -> int:
        """Type-safe integer retrieval from settings."""
        value = self.settings.value(key, default)
        try:
            if value is None:
                return default
            return int(cast(str | int, value))
        except (ValueError, TypeError):
            return default

    @property
    def autosave_enabled(self) -> bool:
        """Check if structural changes are saved automatically."""
        return self._get_bool("editor/autosave", True)

    @autosave_enabled.setter
    def autosave_enabled(self, value: bool) -> None:
        self.settings.setValue("editor/autosave", value)
        self.settings.sync()

    @property
    def default_project_name(self) -> str:
        """Get the name given to new projects."""
        return self._get_str("editor/default_project_name", DEFAULT_PROJECT_NAME) or DEFAULT_PROJECT_NAME

    @default_project_name.setter
    def default_project_name(self, value: str) -> None:
        self.settings.setValue("editor/default_project_name", value.strip())
        self.settings.sync()

    @property
    def max_recent_documents(self) -> int:
        """Get the length of the recent documents list."""
        return max(1, self._get_int("editor/max_recent_documents", 10))

    @max_recent_documents.setter
    def max_recent_documents(self, value: int) -> None:
        if value < 1:
            raise ConfigError(f"max_recent_documents must be positive, got {value}")
        self.settings.setValue("editor/max_recent_documents", value)
        self.settings.sync()

    @property
    def compression_level(self) -> int:
        """Get the gzip level used for project files (0-9)."""
        return max(0, min(9, self._get_int("editor/compression_level", 9)))

    @compression_level.setter
    def compression_level(self, value: int) -> None:
        self.settings.setValue("editor/compression_level", max(0, min(9, value)))
        self.settings.sync()

    @property
    def project_extension(self) -> str:
        """Get the project file extension (with leading dot)."""
        return self._get_str("editor/project_extension", DEFAULT_PROJECT_EXTENSION)

    @project_extension.setter
    def project_extension(self, value: str) -> None:
        if not value.startswith(".") or len(value) < 2:
            raise ConfigError(f"Project extension must start with '.', got {value!r}")
        self.settings.setValue("editor/project_extension", value)
        self.settings.sync()
