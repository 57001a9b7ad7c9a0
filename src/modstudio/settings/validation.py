"""
Settings validation system for R5V Mod Studio.
"""

import logging
from typing import List, TYPE_CHECKING

from .logging import VALID_LEVELS
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration.

        Recent documents that no longer exist are reported and removed.
        """
        errors: List[str] = []
        warnings: List[str] = []

        level = self.settings.logging.console_log_level
        if level.upper() not in VALID_LEVELS:
            errors.append(
                f"Invalid console log level: {level} (expected one of {', '.join(VALID_LEVELS)})"
            )

        extension = self.settings.editor.project_extension
        if not extension.startswith("."):
            errors.append(f"Project extension must start with '.': {extension}")

        for path in self.settings.recent_documents.prune_missing():
            warnings.append(f"Recent document no longer exists: {path}")

        result = ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
        logger.debug(result.summary())
        return result
