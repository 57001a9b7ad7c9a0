"""
Selection manager: which artifact is open in each collection.
"""

import logging
from typing import Iterable, Mapping, Optional

from .collection import CollectionStore
from .models import Artifact, ArtifactKind, SelectionState

DEFAULT_ACTIVE_COLLECTION = ArtifactKind.SCRIPT


class SelectionManager:
    """Keeps the active-artifact pointers of a document valid.

    Selecting an artifact also moves focus to its collection, so the editor
    always shows the most recently touched kind. Deleting the active artifact
    moves the pointer to the first remaining artifact of the collection, or
    clears it when the collection is empty.
    """

    def __init__(
        self,
        state: SelectionState,
        collections: Mapping[ArtifactKind, CollectionStore],
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.state = state
        self.collections = collections

    @property
    def active_collection(self) -> ArtifactKind:
        return self.state.active_collection

    def active_id(self, kind: ArtifactKind) -> Optional[str]:
        """Get the active artifact id of ``kind``."""
        return self.state.get(kind)

    def active_artifact(self, kind: ArtifactKind) -> Optional[Artifact]:
        """Get the active artifact of ``kind`` (None when nothing is selected)."""
        return self.collections[kind].get(self.state.get(kind))

    def set_active(self, kind: ArtifactKind, artifact_id: Optional[str]) -> bool:
        """Select an artifact (or clear the selection) and focus its collection.

        Returns:
            False if ``artifact_id`` is not part of the collection, True otherwise
        """
        if artifact_id is not None and artifact_id not in self.collections[kind]:
            self.logger.warning(f"Cannot select unknown {kind.value} artifact '{artifact_id}'")
            return False
        self.state.set(kind, artifact_id)
        self.state.active_collection = kind
        return True

    def on_artifact_deleted(self, kind: ArtifactKind, deleted_id: str) -> bool:
        """Reassign the active pointer of ``kind`` after ``deleted_id`` was removed.

        Must be called after the artifact is gone from the collection.

        Returns:
            True if the selection state changed
        """
        if self.state.get(kind) != deleted_id:
            return False

        replacement = self.collections[kind].first_id()
        self.state.set(kind, replacement)
        if replacement is None and self.state.active_collection is kind:
            self.state.active_collection = DEFAULT_ACTIVE_COLLECTION
        self.logger.debug(
            f"Active {kind.value} '{deleted_id}' deleted, now {replacement or 'none'}"
        )
        return True

    def on_artifacts_deleted(self, kind: ArtifactKind, deleted_ids: Iterable[str]) -> bool:
        """Batch form of ``on_artifact_deleted`` for folder cascades."""
        changed = False
        for deleted_id in deleted_ids:
            changed = self.on_artifact_deleted(kind, deleted_id) or changed
        return changed

    def repair(self) -> bool:
        """Clear pointers to artifacts that do not exist (used after loading).

        Returns:
            True if any pointer was repaired
        """
        repaired = False
        for kind, collection in self.collections.items():
            artifact_id = self.state.get(kind)
            if artifact_id is not None and artifact_id not in collection:
                self.logger.warning(
                    f"Active {kind.value} '{artifact_id}' does not exist, selecting first artifact"
                )
                self.state.set(kind, collection.first_id())
                repaired = True
        if self.state.get(self.state.active_collection) is None and (
            self.state.active_collection is not DEFAULT_ACTIVE_COLLECTION
        ):
            self.state.active_collection = DEFAULT_ACTIVE_COLLECTION
            repaired = True
        return repaired
