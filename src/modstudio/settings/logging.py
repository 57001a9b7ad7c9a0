"""
Logging options of R5V Mod Studio.

Only console and file output are configurable. The log file location is fixed
relative to the working directory so CLI runs and editor sessions share it.
"""

import logging
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

LOG_FILE_PATH = "logs/modstudio.csv"
DEFAULT_CONSOLE_LEVEL = "INFO"

CONSOLE_ENABLED_KEY = "logging/console_enabled"
CONSOLE_LEVEL_KEY = "logging/console_level"
CONSOLE_COLORS_KEY = "logging/console_use_colors"
FILE_ENABLED_KEY = "logging/file_enabled"

# Canonical names only; aliases such as WARN and FATAL are left out
LEVELS: Dict[str, int] = {
    name: level
    for name, level in logging.getLevelNamesMapping().items()
    if level > logging.NOTSET and logging.getLevelName(level) == name
}
VALID_LEVELS = tuple(sorted(LEVELS, key=LEVELS.__getitem__))


def level_number(name: str, default: int = logging.INFO) -> int:
    """Map a level name (any case) to its numeric value."""
    return LEVELS.get(name.upper(), default)


class LoggingSettings:
    """Console and file logging switches stored in QSettings."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _flag(self, key: str, default: bool) -> bool:
        value = self.settings.value(key, default)
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return default if value is None else bool(value)

    def _set(self, key: str, value: object) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()

    @property
    def console_logging(self) -> bool:
        return self._flag(CONSOLE_ENABLED_KEY, True)

    @console_logging.setter
    def console_logging(self, value: bool) -> None:
        self._set(CONSOLE_ENABLED_KEY, value)

    @property
    def console_log_level(self) -> str:
        """Configured console level name, as stored."""
        value = self.settings.value(CONSOLE_LEVEL_KEY, DEFAULT_CONSOLE_LEVEL)
        return DEFAULT_CONSOLE_LEVEL if value is None else str(value)

    @console_log_level.setter
    def console_log_level(self, value: str) -> None:
        name = value.upper()
        if name not in LEVELS:
            logger.warning(
                f"Invalid console log level: {value}, keeping {self.console_log_level}"
            )
            return
        self._set(CONSOLE_LEVEL_KEY, name)

    @property
    def console_level_number(self) -> int:
        """Numeric console level; unknown stored names fall back to INFO."""
        return level_number(self.console_log_level)

    @property
    def console_use_colors(self) -> bool:
        return self._flag(CONSOLE_COLORS_KEY, True)

    @console_use_colors.setter
    def console_use_colors(self, value: bool) -> None:
        self._set(CONSOLE_COLORS_KEY, value)

    @property
    def file_logging(self) -> bool:
        """CSV file logging; off unless enabled."""
        return self._flag(FILE_ENABLED_KEY, False)

    @file_logging.setter
    def file_logging(self, value: bool) -> None:
        self._set(FILE_ENABLED_KEY, value)

    @property
    def log_file_path(self) -> str:
        return LOG_FILE_PATH
