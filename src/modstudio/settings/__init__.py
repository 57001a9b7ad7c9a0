"""
Settings package for R5V Mod Studio.

Type-safe configuration on top of Qt's QSettings for cross-platform storage.

Usage:
    from modstudio.settings import AppSettings

    settings = AppSettings()
    settings.recent_documents.add("My Mod", "/mods/my_mod.r5vproj")
    result = settings.validate()
"""

from .core import AppSettings
from .editor import EditorSettings
from .logging import LoggingSettings
from .paths import RecentDocument, RecentDocumentsStore
from .types import ConfigVersion, ConfigError, ValidationResult

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "EditorSettings",
    "LoggingSettings",
    "RecentDocument",
    "RecentDocumentsStore",
    "ValidationResult",
]
