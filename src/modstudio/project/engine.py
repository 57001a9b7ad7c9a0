"""
Document engine: the composition root of the project model.

The engine always holds exactly one document. Every mutation goes through it
so that selection, dirty tracking and auto-save stay consistent:

    editor intent -> engine method -> collection mutation
                  -> selection repair -> dirty tracker -> auto-save request

Editor-surface methods return booleans (or the created id / new document)
and never raise for unknown ids or refused operations.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from .collection import CollectionStore, MutationOutcome, MutationResult
from .dirty import DirtyTracker
from .document import ProjectDocument, create_default_document
from .errors import InvalidDocumentFormat, StorageError
from .models import (
    DEFAULT_PROJECT_NAME,
    Artifact,
    ArtifactKind,
    EditorViewState,
    ModSettings,
    utc_now,
)
from .paths import normalize_path
from .persistence import PersistencePipeline, SaveResult
from .picker import FilePicker, NullFilePicker
from .scheduler import QtScheduler, Scheduler
from .selection import SelectionManager
from .serializer import ProjectSerializer
from .signals import DocumentSignals
from .storage import FileStorage, StorageBackend

if TYPE_CHECKING:
    from ..settings import AppSettings
    from ..settings.paths import RecentDocumentsStore

PROJECT_EXTENSION = ".r5vproj"


class CollectionActions:
    """Per-collection view of the engine API (``engine.weapons.create(...)``)."""

    def __init__(self, engine: "DocumentEngine", kind: ArtifactKind):
        self._engine = engine
        self.kind = kind

    @property
    def store(self) -> CollectionStore:
        return self._engine.document.collection(self.kind)

    @property
    def artifacts(self) -> List[Artifact]:
        return self.store.artifacts

    @property
    def folders(self) -> List[str]:
        return self.store.folders

    @property
    def active_id(self) -> Optional[str]:
        return self._engine.selection.active_id(self.kind)

    @property
    def active(self) -> Optional[Artifact]:
        return self._engine.selection.active_artifact(self.kind)

    def get(self, artifact_id: str) -> Artifact:
        return self._engine.get_artifact(self.kind, artifact_id)

    def create(self, name: str, **payload: Any) -> Optional[str]:
        return self._engine.create_artifact(self.kind, name, **payload)

    def delete(self, artifact_id: str) -> bool:
        return self._engine.delete_artifact(self.kind, artifact_id)

    def rename(self, artifact_id: str, new_name: str) -> bool:
        return self._engine.rename_artifact(self.kind, artifact_id, new_name)

    def select(self, artifact_id: Optional[str]) -> bool:
        return self._engine.set_active(self.kind, artifact_id)

    def update(self, artifact_id: str, **changes: Any) -> bool:
        return self._engine.update_artifact(self.kind, artifact_id, **changes)

    def create_folder(self, path: str) -> bool:
        return self._engine.create_folder(self.kind, path)

    def delete_folder(self, path: str) -> bool:
        return self._engine.delete_folder(self.kind, path)

    def rename_folder(self, old_path: str, new_path: str) -> bool:
        return self._engine.rename_folder(self.kind, old_path, new_path)


class DocumentEngine:
    """Owns the current project document and its persistence."""

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        file_picker: Optional[FilePicker] = None,
        scheduler: Optional[Scheduler] = None,
        recent_documents: Optional["RecentDocumentsStore"] = None,
        signals: Optional[DocumentSignals] = None,
        serializer: Optional[ProjectSerializer] = None,
        autosave: bool = True,
        default_name: str = DEFAULT_PROJECT_NAME,
        extension: str = PROJECT_EXTENSION,
    ):
        """Initialize the engine with a fresh default document.

        Args:
            storage: Storage backend (defaults to ``FileStorage``)
            file_picker: Dialog collaborator for save-as/open
            scheduler: Defers auto-saves (defaults to the Qt event loop)
            recent_documents: Store updated after successful saves and loads
            signals: Signal hub (created if not given)
            serializer: Wire codec
            autosave: Persist structural changes when a backing path is known
            default_name: Name of new projects
            extension: Project file extension including the dot
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.signals = signals or DocumentSignals()
        self.storage = storage or FileStorage()
        self.file_picker = file_picker or NullFilePicker()
        self.recent_documents = recent_documents
        self.serializer = serializer or ProjectSerializer()
        self.autosave = autosave
        self.default_name = default_name
        self.extension = extension

        self.dirty = DirtyTracker(on_change=self.signals.unsaved_changed.emit)
        self.pipeline = PersistencePipeline(
            storage=self.storage,
            serializer=self.serializer,
            dirty=self.dirty,
            scheduler=scheduler or QtScheduler(),
            document_provider=lambda: self.document,
            signals=self.signals,
        )

        self._document = create_default_document(default_name)
        self._selection = SelectionManager(self._document.selection, self._document.collections)

        self.scripts = CollectionActions(self, ArtifactKind.SCRIPT)
        self.weapons = CollectionActions(self, ArtifactKind.WEAPON)
        self.ui_files = CollectionActions(self, ArtifactKind.UI)
        self.localization_files = CollectionActions(self, ArtifactKind.LOCALIZATION)

    @classmethod
    def from_settings(
        cls,
        settings: "AppSettings",
        file_picker: Optional[FilePicker] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> "DocumentEngine":
        """Create an engine configured from application settings."""
        editor = settings.editor
        return cls(
            storage=FileStorage(compression_level=editor.compression_level),
            file_picker=file_picker,
            scheduler=scheduler,
            recent_documents=settings.recent_documents,
            autosave=editor.autosave_enabled,
            default_name=editor.default_project_name,
            extension=editor.project_extension,
        )

    # === STATE ===

    @property
    def document(self) -> ProjectDocument:
        return self._document

    @property
    def selection(self) -> SelectionManager:
        return self._selection

    @property
    def backing_path(self) -> Optional[str]:
        return self.pipeline.backing_path

    @property
    def has_unsaved_changes(self) -> bool:
        return self.dirty.has_unsaved_changes

    @property
    def modified_ids(self) -> frozenset[str]:
        """Ids of artifacts with unsaved content edits."""
        return self.dirty.dirty_ids

    @property
    def is_saving(self) -> bool:
        return self.pipeline.is_saving

    @property
    def default_save_name(self) -> str:
        """Suggested file name for save-as."""
        return f"{self._document.metadata.name or 'Untitled'}{self.extension}"

    def get_artifact(self, kind: ArtifactKind | str, artifact_id: str) -> Artifact:
        """Get an artifact by id.

        Raises:
            UnknownArtifact: If the id is not in the collection
        """
        return self._document.collection(ArtifactKind(kind)).require(artifact_id)

    def active_artifact(self, kind: ArtifactKind | str) -> Optional[Artifact]:
        return self._selection.active_artifact(ArtifactKind(kind))

    # === ARTIFACT OPERATIONS ===

    def create_artifact(self, kind: ArtifactKind | str, name: str, **payload: Any) -> Optional[str]:
        """Create an artifact and select it.

        Args:
            kind: Collection to create the artifact in
            name: Display name (normalized by the collection's naming rule)
            **payload: Kind-specific fields (``base_weapon``, ``file_type``,
                ``language``, ``tokens``, ...)

        Returns:
            Id of the new artifact, or None if the payload was rejected
        """
        kind = ArtifactKind(kind)
        try:
            artifact = self._document.collection(kind).create_artifact(name, **payload)
        except ValueError as e:
            self.logger.warning(f"Cannot create {kind.value} '{name}': {e}")
            return None

        self._select(kind, artifact.id)
        self._after_structural_change()
        return artifact.id

    def delete_artifact(self, kind: ArtifactKind | str, artifact_id: str) -> bool:
        """Delete an artifact; the last script is never deleted."""
        kind = ArtifactKind(kind)
        result = self._document.collection(kind).delete_artifact(artifact_id)
        if not self._check(result, f"delete {kind.value} '{artifact_id}'"):
            return False

        if self._selection.on_artifact_deleted(kind, artifact_id):
            self._emit_selection(kind)
        self._after_structural_change(result.removed_ids)
        return True

    def rename_artifact(self, kind: ArtifactKind | str, artifact_id: str, new_name: str) -> bool:
        kind = ArtifactKind(kind)
        result = self._document.collection(kind).rename_artifact(artifact_id, new_name)
        if not self._check(result, f"rename {kind.value} '{artifact_id}'"):
            return False
        self._after_structural_change()
        return True

    def set_active(self, kind: ArtifactKind | str, artifact_id: Optional[str]) -> bool:
        """Select an artifact (None clears the selection) and focus its collection."""
        kind = ArtifactKind(kind)
        if not self._selection.set_active(kind, artifact_id):
            return False
        self._emit_selection(kind)
        return True

    def update_artifact(self, kind: ArtifactKind | str, artifact_id: str, **changes: Any) -> bool:
        """Replace content fields of an artifact.

        Content edits mark the artifact dirty but never trigger auto-save.

        Raises:
            ValueError: For fields that are not editable content
        """
        kind = ArtifactKind(kind)
        result = self._document.collection(kind).update_artifact(artifact_id, **changes)
        if not self._check(result, f"update {kind.value} '{artifact_id}'"):
            return False
        self.dirty.mark_dirty(artifact_id)
        self.signals.document_changed.emit()
        return True

    def update_script_content(
        self,
        artifact_id: str,
        nodes: List[Dict[str, Any]],
        connections: List[Dict[str, Any]],
    ) -> bool:
        return self.update_artifact(
            ArtifactKind.SCRIPT, artifact_id, nodes=list(nodes), connections=list(connections)
        )

    def update_weapon_content(self, artifact_id: str, content: str) -> bool:
        return self.update_artifact(ArtifactKind.WEAPON, artifact_id, content=content)

    def update_ui_content(self, artifact_id: str, content: str) -> bool:
        return self.update_artifact(ArtifactKind.UI, artifact_id, content=content)

    def update_localization_tokens(self, artifact_id: str, tokens: Dict[str, str]) -> bool:
        return self.update_artifact(ArtifactKind.LOCALIZATION, artifact_id, tokens=dict(tokens))

    # === FOLDER OPERATIONS ===

    def create_folder(self, kind: ArtifactKind | str, path: str) -> bool:
        """Add an explicit folder; ``"weapons/"`` and ``"weapons"`` are the same folder."""
        kind = ArtifactKind(kind)
        path = normalize_path(path)
        result = self._document.collection(kind).create_folder(path)
        if not self._check(result, f"create {kind.value} folder '{path}'"):
            return False
        self._after_structural_change()
        return True

    def delete_folder(self, kind: ArtifactKind | str, path: str) -> bool:
        """Delete a folder with its sub-folders and every artifact inside."""
        kind = ArtifactKind(kind)
        path = normalize_path(path)
        result = self._document.collection(kind).delete_folder(path)
        if not self._check(result, f"delete {kind.value} folder '{path}'"):
            return False

        if self._selection.on_artifacts_deleted(kind, result.removed_ids):
            self._emit_selection(kind)
        self._after_structural_change(result.removed_ids)
        return True

    def rename_folder(self, kind: ArtifactKind | str, old_path: str, new_path: str) -> bool:
        kind = ArtifactKind(kind)
        old_path, new_path = normalize_path(old_path), normalize_path(new_path)
        if not old_path or not new_path:
            self.logger.warning(f"Cannot rename {kind.value} folder to or from the top level")
            return False
        result = self._document.collection(kind).rename_folder(old_path, new_path)
        if not self._check(result, f"rename {kind.value} folder '{old_path}'"):
            return False
        self._after_structural_change()
        return True

    # === DOCUMENT-LEVEL EDITS ===

    def update_metadata(self, **fields: Any) -> bool:
        """Update project name, version, description or author.

        Raises:
            ValueError: For fields that cannot be edited
        """
        metadata = self._document.metadata
        invalid = set(fields) - metadata.EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Metadata fields {sorted(invalid)} cannot be edited")

        changes = {k: v for k, v in fields.items() if getattr(metadata, k) != v}
        if not changes:
            return False
        for key, value in changes.items():
            setattr(metadata, key, value)
        metadata.modified_at = utc_now()
        self.logger.debug(f"Updated metadata fields {sorted(changes)}")
        self.dirty.mark_document_modified()
        self.signals.document_changed.emit()
        return True

    def update_mod_settings(self, mod: ModSettings) -> bool:
        """Replace the mod export settings."""
        if mod == self._document.mod:
            return False
        self._document.mod = mod
        self.logger.debug(f"Updated mod settings for '{mod.mod_id}'")
        self.dirty.mark_document_modified()
        self.signals.document_changed.emit()
        return True

    def update_view_state(self, view: EditorViewState) -> None:
        """Store canvas position and zoom; stored with the next save."""
        self._document.view = view

    # === DIRTY STATE ===

    def mark_file_modified(self, artifact_id: str) -> None:
        self.dirty.mark_dirty(artifact_id)

    def mark_file_saved(self, artifact_id: str) -> None:
        self.dirty.mark_clean(artifact_id)

    def mark_modified(self) -> None:
        """Flag the document as changed without naming an artifact."""
        self.dirty.mark_document_modified()

    def mark_saved(self) -> None:
        """Clear all unsaved state (used after an external save)."""
        self.dirty.mark_all_clean()

    # === PERSISTENCE ===

    def save(self) -> bool:
        """Save to the backing path, asking for one if the document is new.

        Returns:
            True if the document was written, or queued behind a running save
        """
        if self.backing_path is None:
            return self.save_as()
        return self._finish_save(self.pipeline.save())

    def save_as(self) -> bool:
        """Ask for a path and save there; the path becomes the backing path."""
        answer = self.file_picker.ask_save_path(self.default_save_name, self.extension)
        if answer.canceled or not answer.path:
            self.logger.info("Save dialog canceled")
            return False

        path = answer.path
        if not path.endswith(self.extension):
            path = f"{path}{self.extension}"
        return self._finish_save(self.pipeline.save(path))

    def load(self) -> bool:
        """Ask for a project file and open it."""
        answer = self.file_picker.ask_open_paths([self.extension])
        if answer.canceled or not answer.paths:
            self.logger.info("Open dialog canceled")
            return False
        return self.load_from_path(answer.paths[0])

    def load_from_path(self, path: str) -> bool:
        """Open a project file, replacing the current document.

        On failure the current document is left untouched.
        """
        self.pipeline.flush()
        try:
            read = self.storage.read(path)
            document = self.serializer.loads(read.data)
        except (StorageError, InvalidDocumentFormat) as e:
            self.logger.error(f"Failed to open project {path}: {e}")
            self.signals.load_failed.emit(path, str(e))
            return False

        self._replace_document(document, path)
        self.logger.info(
            f"Opened project '{document.metadata.name}' from {path} "
            f"({'compressed' if read.compressed else 'uncompressed'})"
        )
        self._remember(path)
        return True

    def new_document(self, name: Optional[str] = None) -> ProjectDocument:
        """Replace the current document with a fresh default project."""
        self.pipeline.flush()
        if self.dirty.has_unsaved_changes:
            self.logger.warning("Discarding unsaved changes of the current project")
        document = create_default_document(name or self.default_name)
        self._replace_document(document, None)
        self.logger.info(f"Created new project '{document.metadata.name}'")
        return document

    def close(self) -> bool:
        """Flush pending saves.

        Returns:
            True if everything was persisted
        """
        return self.pipeline.close()

    # === INTERNALS ===

    def _finish_save(self, result: SaveResult) -> bool:
        if result.queued:
            self.logger.debug(f"Save to {result.path} queued behind the running save")
        if result.accepted and result.path is not None:
            self._remember(result.path)
        return result.accepted

    def _remember(self, path: str) -> None:
        if self.recent_documents is not None:
            self.recent_documents.add(self._document.metadata.name, path)

    def _replace_document(self, document: ProjectDocument, path: Optional[str]) -> None:
        self.pipeline.discard_pending()
        self._document = document
        self._selection = SelectionManager(document.selection, document.collections)
        self._selection.repair()
        self.dirty.reset()
        self.pipeline.backing_path = path
        self.signals.document_replaced.emit(document)

    def _select(self, kind: ArtifactKind, artifact_id: str) -> None:
        self._selection.set_active(kind, artifact_id)
        self._emit_selection(kind)

    def _emit_selection(self, kind: ArtifactKind) -> None:
        self.signals.selection_changed.emit(kind.value, self._selection.active_id(kind))

    def _check(self, result: MutationResult, action: str) -> bool:
        if result.changed:
            return True
        if result.outcome is MutationOutcome.NOT_FOUND:
            self.logger.warning(f"Cannot {action}: not found")
        elif result.outcome is MutationOutcome.LAST_ARTIFACT_PROTECTED:
            self.logger.warning(f"Cannot {action}: a project needs at least one script")
        return False

    def _after_structural_change(self, removed_ids: Iterable[str] = ()) -> None:
        self.dirty.forget(removed_ids)
        self.dirty.mark_structural()
        self.signals.document_changed.emit()
        if self.autosave:
            self.pipeline.request_autosave()
