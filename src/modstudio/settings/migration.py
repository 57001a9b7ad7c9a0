"""
Settings migration system for R5V Mod Studio.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, TYPE_CHECKING

import orjson

from .paths import RECENT_DOCUMENTS_KEY, RecentDocument, read_json_value
from .types import ConfigVersion

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

LEGACY_RECENT_KEY = "recentProjects"


class SettingsMigrator:
    """Handles configuration migration between versions."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def ensure_version(self) -> None:
        """Ensure configuration version is set and handle migrations."""
        current_version = str(self.settings.value("app/version", ""))

        if not current_version:
            if self.settings.contains(LEGACY_RECENT_KEY):
                # Written by an editor that predates versioned settings
                self._migrate_config(ConfigVersion.V1_0.value, ConfigVersion.CURRENT.value)
                return
            self.settings.setValue("app/version", ConfigVersion.CURRENT.value)
            self.settings.setValue("app/first_run", True)
            self.settings.sync()
            logger.info("First run detected, initializing configuration")
        elif current_version != ConfigVersion.CURRENT.value:
            self._migrate_config(current_version, ConfigVersion.CURRENT.value)

    def _migrate_config(self, from_version: str, to_version: str) -> None:
        """Migrate configuration from old version to new version."""
        logger.info(f"Migrating configuration from {from_version} to {to_version}")

        if from_version == "1.0" and to_version == "1.1":
            self._migrate_1_0_to_1_1()

        self.settings.setValue("app/version", to_version)
        self.settings.setValue("app/migrated_from", from_version)
        self.settings.sync()
        logger.info(f"Migration from {from_version} to {to_version} completed")

    def _migrate_1_0_to_1_1(self) -> None:
        """Migrate from version 1.0 to 1.1 - structured recent documents.

        The legacy value is a JSON string of ``{name, path, lastOpened}``
        objects with ``lastOpened`` in epoch milliseconds.
        """
        logger.debug("Performing migration from 1.0 to 1.1")

        raw = read_json_value(self.settings, LEGACY_RECENT_KEY)
        if not raw:
            return

        try:
            items = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning(f"Dropping unreadable legacy recent projects list: {e}")
            self.settings.remove(LEGACY_RECENT_KEY)
            return

        migrated: List[RecentDocument] = []
        for item in items if isinstance(items, list) else []:
            entry = self._convert_legacy_entry(item)
            if entry is not None and all(e.path != entry.path for e in migrated):
                migrated.append(entry)

        payload = orjson.dumps([e.to_dict() for e in migrated]).decode("utf-8")
        self.settings.setValue(RECENT_DOCUMENTS_KEY, payload)
        self.settings.remove(LEGACY_RECENT_KEY)
        logger.info(f"Migrated {len(migrated)} recent project(s)")

    def _convert_legacy_entry(self, item: Any) -> Optional[RecentDocument]:
        if not isinstance(item, dict) or not isinstance(item.get("path"), str):
            logger.warning(f"Skipping invalid legacy recent project: {item!r}")
            return None
        last_opened = item.get("lastOpened")
        if isinstance(last_opened, (int, float)):
            opened_at = datetime.fromtimestamp(last_opened / 1000, tz=timezone.utc)
        else:
            opened_at = datetime.now(timezone.utc)
        return RecentDocument(
            name=str(item.get("name") or "Untitled"),
            path=item["path"],
            last_opened=opened_at,
        )
