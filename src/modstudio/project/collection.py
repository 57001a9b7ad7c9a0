"""
Collection store: the artifacts and folders of one artifact kind.

A collection keeps an ordered list of artifacts and an explicit list of folder
paths (so empty folders survive). Every mutating operation returns a
``MutationResult`` telling the caller whether anything changed, which the
document engine uses to decide about dirty tracking and auto-save.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from .artifacts import new_artifact, normalize_name
from .errors import UnknownArtifact
from .models import Artifact, ArtifactKind, utc_now
from .paths import ancestors, is_descendant, parent_of, rebase


class MutationOutcome(Enum):
    """What happened when a mutation was requested."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"
    LAST_ARTIFACT_PROTECTED = "last_artifact_protected"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a collection mutation.

    Attributes:
        outcome: Whether the mutation was applied or why it was not
        removed_ids: Ids of artifacts removed by the mutation
        changed_ids: Ids of artifacts whose fields were rewritten
        created_id: Id of the artifact created by the mutation
    """

    outcome: MutationOutcome
    removed_ids: Tuple[str, ...] = ()
    changed_ids: Tuple[str, ...] = ()
    created_id: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.outcome is MutationOutcome.APPLIED

    def __bool__(self) -> bool:
        return self.changed


UNCHANGED = MutationResult(MutationOutcome.UNCHANGED)
NOT_FOUND = MutationResult(MutationOutcome.NOT_FOUND)
LAST_ARTIFACT_PROTECTED = MutationResult(MutationOutcome.LAST_ARTIFACT_PROTECTED)


class CollectionStore:
    """Artifacts plus folder paths for one artifact kind.

    The script collection is protected: no operation may remove its last
    artifact. Such requests return ``LAST_ARTIFACT_PROTECTED`` and leave the
    collection untouched.
    """

    def __init__(
        self,
        kind: ArtifactKind,
        artifacts: Optional[Iterable[Artifact]] = None,
        folders: Optional[Iterable[str]] = None,
        protect_last: Optional[bool] = None,
    ):
        """Initialize the collection.

        Args:
            kind: Artifact kind held by this collection
            artifacts: Initial artifacts in display order
            folders: Initial explicit folder paths
            protect_last: Refuse removal of the last artifact
                (defaults to True for scripts only)

        Raises:
            ValueError: If an artifact has the wrong kind or a duplicate id
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.kind = kind
        self.protect_last = kind is ArtifactKind.SCRIPT if protect_last is None else protect_last

        self._artifacts: List[Artifact] = []
        self._folders: List[str] = []

        for artifact in artifacts or []:
            self.add(artifact)
        for folder in folders or []:
            if folder not in self._folders:
                self._folders.append(folder)

    # === READ ACCESS ===

    @property
    def artifacts(self) -> List[Artifact]:
        """Artifacts in display order (a copy of the internal list)."""
        return list(self._artifacts)

    @property
    def folders(self) -> List[str]:
        """Explicit folder paths in creation order."""
        return list(self._folders)

    @property
    def ids(self) -> List[str]:
        return [artifact.id for artifact in self._artifacts]

    @property
    def names(self) -> List[str]:
        return [artifact.name for artifact in self._artifacts]

    def __len__(self) -> int:
        return len(self._artifacts)

    def __iter__(self) -> Iterator[Artifact]:
        return iter(list(self._artifacts))

    def __contains__(self, artifact_id: object) -> bool:
        return any(artifact.id == artifact_id for artifact in self._artifacts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CollectionStore):
            return NotImplemented
        return (
            self.kind is other.kind
            and self._artifacts == other._artifacts
            and self._folders == other._folders
        )

    def __repr__(self) -> str:
        return (
            f"CollectionStore(kind={self.kind.value!r}, "
            f"artifacts={len(self._artifacts)}, folders={len(self._folders)})"
        )

    def get(self, artifact_id: Optional[str]) -> Optional[Artifact]:
        """Get an artifact by id, or None if it is not in the collection."""
        if artifact_id is None:
            return None
        for artifact in self._artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def require(self, artifact_id: str) -> Artifact:
        """Get an artifact by id.

        Raises:
            UnknownArtifact: If the id is not in the collection
        """
        artifact = self.get(artifact_id)
        if artifact is None:
            raise UnknownArtifact(self.kind.value, artifact_id)
        return artifact

    def find_by_name(self, name: str) -> List[Artifact]:
        """Get every artifact with the given display name (names may repeat)."""
        return [artifact for artifact in self._artifacts if artifact.name == name]

    def first_id(self) -> Optional[str]:
        """Id of the first artifact in display order."""
        return self._artifacts[0].id if self._artifacts else None

    def all_folders(self) -> List[str]:
        """Explicit folders plus folders implied by artifact names, sorted."""
        found = set(self._folders)
        for folder in self._folders:
            found.update(ancestors(folder))
        for artifact in self._artifacts:
            found.update(ancestors(artifact.name))
        return sorted(found)

    def list_folder(self, folder: Optional[str]) -> List[Artifact]:
        """Artifacts directly inside ``folder`` (None for top level)."""
        return [artifact for artifact in self._artifacts if parent_of(artifact.name) == folder]

    # === ARTIFACT MUTATIONS ===

    def add(self, artifact: Artifact) -> MutationResult:
        """Append an existing artifact.

        Raises:
            ValueError: If the artifact kind does not match or the id is taken
        """
        if artifact.kind is not self.kind:
            raise ValueError(
                f"Cannot add {artifact.kind.value} artifact to {self.kind.value} collection"
            )
        if artifact.id in self:
            raise ValueError(f"Duplicate {self.kind.value} artifact id: {artifact.id}")
        self._artifacts.append(artifact)
        return MutationResult(MutationOutcome.APPLIED, created_id=artifact.id)

    def create_artifact(self, name: str, **payload: Any) -> Artifact:
        """Create and append a new artifact.

        Intermediate folders in ``name`` are not added to the folder list.

        Args:
            name: Display name (normalized with the collection's naming rule)
            **payload: Kind-specific fields passed to the artifact factory

        Returns:
            The created artifact
        """
        artifact = new_artifact(self.kind, name, **payload)
        self.add(artifact)
        self.logger.debug(f"Created {self.kind.value} '{artifact.name}' ({artifact.id})")
        return artifact

    def delete_artifact(self, artifact_id: str) -> MutationResult:
        """Remove an artifact by id.

        Returns:
            APPLIED with ``removed_ids``, NOT_FOUND, or LAST_ARTIFACT_PROTECTED
        """
        artifact = self.get(artifact_id)
        if artifact is None:
            return NOT_FOUND
        if self.protect_last and len(self._artifacts) == 1:
            self.logger.warning(
                f"Refusing to delete '{artifact.name}': last {self.kind.value} in project"
            )
            return LAST_ARTIFACT_PROTECTED

        self._artifacts = [a for a in self._artifacts if a.id != artifact_id]
        self.logger.debug(f"Deleted {self.kind.value} '{artifact.name}' ({artifact_id})")
        return MutationResult(MutationOutcome.APPLIED, removed_ids=(artifact_id,))

    def rename_artifact(
        self, artifact_id: str, new_name: str, when: Optional[datetime] = None
    ) -> MutationResult:
        """Rename an artifact, applying the collection's naming rule.

        Returns:
            APPLIED, UNCHANGED when the normalized name is the current one,
            or NOT_FOUND
        """
        artifact = self.get(artifact_id)
        if artifact is None:
            return NOT_FOUND

        clean_name = normalize_name(self.kind, new_name)
        if clean_name == artifact.name:
            return UNCHANGED

        old_name = artifact.name
        artifact.name = clean_name
        artifact.touch(when)
        self.logger.debug(f"Renamed {self.kind.value} '{old_name}' -> '{clean_name}'")
        return MutationResult(MutationOutcome.APPLIED, changed_ids=(artifact_id,))

    def update_artifact(
        self, artifact_id: str, when: Optional[datetime] = None, **changes: Any
    ) -> MutationResult:
        """Replace content fields of an artifact and bump ``modified_at``.

        Only fields listed in the artifact's ``EDITABLE_FIELDS`` may change.

        Raises:
            ValueError: For fields that are not editable content
        """
        artifact = self.get(artifact_id)
        if artifact is None:
            return NOT_FOUND

        for field_name, value in artifact.check_changes(changes).items():
            setattr(artifact, field_name, value)
        artifact.touch(when)
        return MutationResult(MutationOutcome.APPLIED, changed_ids=(artifact_id,))

    # === FOLDER MUTATIONS ===

    def create_folder(self, path: str) -> MutationResult:
        """Add an explicit folder path (idempotent)."""
        if not path or path in self._folders:
            return UNCHANGED
        self._folders.append(path)
        self.logger.debug(f"Created {self.kind.value} folder '{path}'")
        return MutationResult(MutationOutcome.APPLIED)

    def delete_folder(self, path: str) -> MutationResult:
        """Remove a folder, its sub-folders, and every artifact inside them.

        The cascade is computed first and applied in one step. When the
        collection is protected and the cascade would remove every artifact,
        nothing is removed.
        """
        remaining_folders = [f for f in self._folders if not is_descendant(f, path)]
        remaining = [a for a in self._artifacts if not is_descendant(a.name, path)]
        removed_ids = tuple(a.id for a in self._artifacts if is_descendant(a.name, path))

        if len(remaining_folders) == len(self._folders) and not removed_ids:
            return UNCHANGED

        if self.protect_last and self._artifacts and not remaining:
            self.logger.warning(
                f"Refusing to delete folder '{path}': it holds every {self.kind.value} in the project"
            )
            return LAST_ARTIFACT_PROTECTED

        self._artifacts = remaining
        self._folders = remaining_folders
        self.logger.debug(
            f"Deleted {self.kind.value} folder '{path}' with {len(removed_ids)} artifact(s)"
        )
        return MutationResult(MutationOutcome.APPLIED, removed_ids=removed_ids)

    def rename_folder(
        self, old_path: str, new_path: str, when: Optional[datetime] = None
    ) -> MutationResult:
        """Move a folder and everything under it to ``new_path``.

        Entries outside ``old_path`` are untouched. A collision with an
        existing folder merges the two (last write wins).
        """
        if old_path == new_path:
            return UNCHANGED

        moved = [a for a in self._artifacts if is_descendant(a.name, old_path)]
        touches_folders = any(is_descendant(f, old_path) for f in self._folders)
        if not moved and not touches_folders:
            return UNCHANGED

        rebased_folders: List[str] = []
        for folder in self._folders:
            folder = rebase(folder, old_path, new_path)
            if folder not in rebased_folders:
                rebased_folders.append(folder)

        when = when or utc_now()
        for artifact in moved:
            artifact.name = rebase(artifact.name, old_path, new_path)
            artifact.touch(when)
        self._folders = rebased_folders

        self.logger.debug(
            f"Renamed {self.kind.value} folder '{old_path}' -> '{new_path}' "
            f"({len(moved)} artifact(s) moved)"
        )
        return MutationResult(
            MutationOutcome.APPLIED, changed_ids=tuple(a.id for a in moved)
        )
