"""
The project document: metadata, selection, four collections and mod settings.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .artifacts import new_script
from .collection import CollectionStore
from .models import (
    DEFAULT_PROJECT_NAME,
    DEFAULT_SCRIPT_NAME,
    ArtifactKind,
    EditorViewState,
    ModSettings,
    ProjectMetadata,
    SelectionState,
    utc_now,
)


def _empty_collections() -> Dict[ArtifactKind, CollectionStore]:
    return {kind: CollectionStore(kind) for kind in ArtifactKind}


@dataclass
class ProjectDocument:
    """Complete in-memory state of one project file.

    Documents are never partially reused: opening a file or creating a new
    project builds a fresh instance.
    """

    metadata: ProjectMetadata
    selection: SelectionState = field(default_factory=SelectionState)
    collections: Dict[ArtifactKind, CollectionStore] = field(
        default_factory=_empty_collections
    )
    mod: ModSettings = field(default_factory=ModSettings)
    view: EditorViewState = field(default_factory=EditorViewState)

    def __post_init__(self) -> None:
        for kind in ArtifactKind:
            if kind not in self.collections:
                self.collections[kind] = CollectionStore(kind)

    def collection(self, kind: ArtifactKind) -> CollectionStore:
        """Get the collection holding artifacts of ``kind``."""
        return self.collections[kind]

    def iter_collections(self) -> Iterator[CollectionStore]:
        """Collections in the fixed order script, weapon, UI, localization."""
        for kind in ArtifactKind:
            yield self.collections[kind]

    @property
    def scripts(self) -> CollectionStore:
        return self.collections[ArtifactKind.SCRIPT]

    @property
    def weapons(self) -> CollectionStore:
        return self.collections[ArtifactKind.WEAPON]

    @property
    def ui_files(self) -> CollectionStore:
        return self.collections[ArtifactKind.UI]

    @property
    def localization_files(self) -> CollectionStore:
        return self.collections[ArtifactKind.LOCALIZATION]

    @property
    def display_name(self) -> str:
        return self.metadata.name or "Untitled"


def create_default_document(name: Optional[str] = None) -> ProjectDocument:
    """Create a fresh project with a single empty ``main.nut`` script.

    Args:
        name: Project name (defaults to "Untitled Project")

    Returns:
        New document with the default script selected
    """
    now = utc_now()
    metadata = ProjectMetadata(
        name=name or DEFAULT_PROJECT_NAME,
        created_at=now,
        modified_at=now,
        description="",
        author="",
    )
    script = new_script(DEFAULT_SCRIPT_NAME, now=now)
    document = ProjectDocument(metadata=metadata)
    document.scripts.add(script)
    document.selection.active_script = script.id
    return document
