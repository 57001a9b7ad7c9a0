"""
Recent documents store for R5V Mod Studio.

Entries are kept newest first, unique by path, in a single QSettings value
holding a JSON array.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, TYPE_CHECKING, Union

import orjson

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

RECENT_DOCUMENTS_KEY = "paths/recent_documents"
DEFAULT_MAX_RECENT = 10


def read_json_value(settings: "QSettings", key: str) -> str:
    """Read a JSON string value.

    INI-backed stores may hand back an unquoted string containing commas as
    a list of its parts; those are joined back together.
    """
    value = settings.value(key, "")
    if isinstance(value, list):
        return ",".join(str(part) for part in value)
    return str(value) if value is not None else ""


@dataclass(frozen=True)
class RecentDocument:
    """A recently opened or saved project."""

    name: str
    path: str
    last_opened: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "path": self.path,
            "lastOpened": self.last_opened.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecentDocument":
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            last_opened=datetime.fromisoformat(str(data["lastOpened"])),
        )


class RecentDocumentsStore:
    """Manages the recent documents list."""

    def __init__(self, settings: "QSettings", max_recent: int = DEFAULT_MAX_RECENT):
        self.settings = settings
        self.max_recent = max_recent

    @property
    def entries(self) -> List[RecentDocument]:
        """Get recent documents, newest first."""
        raw = read_json_value(self.settings, RECENT_DOCUMENTS_KEY)
        if not raw:
            return []
        try:
            items = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt recent documents list: {e}")
            return []

        entries: List[RecentDocument] = []
        for item in items if isinstance(items, list) else []:
            try:
                entries.append(RecentDocument.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid recent document entry {item!r}: {e}")
        return entries

    @property
    def paths(self) -> List[str]:
        return [entry.path for entry in self.entries]

    def add(self, name: str, path: Union[str, Path]) -> None:
        """Add a document to the top of the list (max ``max_recent`` items)."""
        path_str = str(path)
        entry = RecentDocument(name=name, path=path_str, last_opened=datetime.now(timezone.utc))
        recent = [e for e in self.entries if e.path != path_str]
        recent.insert(0, entry)
        self._store(recent[: self.max_recent])

    def remove(self, path: Union[str, Path]) -> bool:
        """Remove a document from the list.

        Returns:
            True if the path was listed
        """
        path_str = str(path)
        recent = self.entries
        remaining = [e for e in recent if e.path != path_str]
        if len(remaining) == len(recent):
            return False
        self._store(remaining)
        return True

    def clear(self) -> None:
        """Clear recent documents list."""
        self._store([])

    def prune_missing(self) -> List[str]:
        """Drop entries whose file no longer exists.

        Returns:
            Paths that were removed
        """
        recent = self.entries
        missing = [e.path for e in recent if not Path(e.path).exists()]
        if missing:
            self._store([e for e in recent if e.path not in missing])
        return missing

    def _store(self, entries: List[RecentDocument]) -> None:
        payload = orjson.dumps([e.to_dict() for e in entries]).decode("utf-8")
        self.settings.setValue(RECENT_DOCUMENTS_KEY, payload)
        self.settings.sync()
