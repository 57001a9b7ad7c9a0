"""
Dirty tracking for the project document.

Two kinds of change make a document unsaved:

- content edits, attributed to a single artifact id (the dirty set)
- structural changes (create/delete/rename of artifacts or folders) and
  document-level edits (metadata, mod settings), which are not attributable
  to one artifact and are tracked as flags

Every change bumps ``revision``. A save records the revision it serialized
and only clears state if nothing changed while it was running.
"""

import logging
from typing import Callable, FrozenSet, Iterable, Optional, Set


class DirtyTracker:
    """Tracks which artifacts and document parts changed since the last save."""

    def __init__(self, on_change: Optional[Callable[[bool], None]] = None):
        """Initialize a clean tracker.

        Args:
            on_change: Called with the new unsaved flag whenever it flips
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._dirty_ids: Set[str] = set()
        self._structural = False
        self._document_modified = False
        self._revision = 0
        self._on_change = on_change

    @property
    def dirty_ids(self) -> FrozenSet[str]:
        """Ids of artifacts with unsaved content edits."""
        return frozenset(self._dirty_ids)

    @property
    def has_structural_changes(self) -> bool:
        return self._structural

    @property
    def has_unsaved_changes(self) -> bool:
        """True if anything changed since the last successful save."""
        return bool(self._dirty_ids) or self._structural or self._document_modified

    @property
    def revision(self) -> int:
        """Counter bumped on every recorded change."""
        return self._revision

    def is_dirty(self, artifact_id: str) -> bool:
        return artifact_id in self._dirty_ids

    def mark_dirty(self, artifact_id: str) -> None:
        """Record a content edit of one artifact."""
        before = self.has_unsaved_changes
        self._dirty_ids.add(artifact_id)
        self._revision += 1
        self._notify(before)

    def mark_clean(self, artifact_id: str) -> None:
        """Drop one artifact from the dirty set."""
        if artifact_id not in self._dirty_ids:
            return
        before = self.has_unsaved_changes
        self._dirty_ids.discard(artifact_id)
        self._notify(before)

    def forget(self, artifact_ids: Iterable[str]) -> None:
        """Remove deleted artifacts from the dirty set."""
        self._dirty_ids.difference_update(artifact_ids)

    def mark_structural(self) -> None:
        """Record a create/delete/rename of an artifact or folder."""
        before = self.has_unsaved_changes
        self._structural = True
        self._revision += 1
        self._notify(before)

    def mark_document_modified(self) -> None:
        """Record a document-level edit (metadata, mod settings)."""
        before = self.has_unsaved_changes
        self._document_modified = True
        self._revision += 1
        self._notify(before)

    def mark_all_clean(self) -> None:
        """Clear every dirty id and flag."""
        before = self.has_unsaved_changes
        self._dirty_ids.clear()
        self._structural = False
        self._document_modified = False
        self._notify(before)

    def clear_if_unchanged(self, revision: int) -> bool:
        """Clear all state if no change happened after ``revision`` was taken.

        Returns:
            True if the tracker was cleared
        """
        if revision != self._revision:
            self.logger.debug(
                f"Document changed during save (revision {revision} -> {self._revision}), "
                "keeping unsaved state"
            )
            return False
        self.mark_all_clean()
        return True

    def reset(self) -> None:
        """Forget everything, used when the document is replaced."""
        self.mark_all_clean()
        self._revision = 0

    def _notify(self, before: bool) -> None:
        after = self.has_unsaved_changes
        if after != before and self._on_change is not None:
            self._on_change(after)
