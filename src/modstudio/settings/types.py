"""
Configuration type definitions and exceptions for R5V Mod Studio.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ConfigVersion(Enum):
    """Configuration version for migration support.

    1.1 stores recent documents as structured entries instead of the
    JSON-encoded ``recentProjects`` string.
    """
    V1_0 = "1.0"
    V1_1 = "1.1"
    CURRENT = V1_1


class ConfigError(Exception):
    """Raised when a configuration value is invalid."""
    pass


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """One-line description for logs and the CLI."""
        state = "valid" if self.is_valid else "invalid"
        return f"Configuration {state}: {len(self.errors)} error(s), {len(self.warnings)} warning(s)"
