"""
Project document engine for R5V Mod Studio.

Usage:
    from modstudio.project import DocumentEngine, ArtifactKind

    engine = DocumentEngine()
    weapon_id = engine.create_artifact(ArtifactKind.WEAPON, "smg/r97")
    engine.save_as()
"""

from .collection import CollectionStore, MutationOutcome, MutationResult
from .dirty import DirtyTracker
from .document import ProjectDocument, create_default_document
from .engine import PROJECT_EXTENSION, CollectionActions, DocumentEngine
from .errors import (
    InvalidDocumentFormat,
    ProjectError,
    StorageError,
    StorageReadFailed,
    StorageUnavailable,
    StorageWriteFailed,
    UnknownArtifact,
)
from .models import (
    Artifact,
    ArtifactKind,
    EditorViewState,
    LocalizationFile,
    LocalizationFileRef,
    ModSettings,
    ProjectMetadata,
    ScriptFile,
    SelectionState,
    UIFile,
    UIFileType,
    WeaponFile,
)
from .persistence import PersistencePipeline, SaveResult, SaveTrigger
from .picker import FilePicker, OpenDialogResult, SaveDialogResult
from .scheduler import ManualScheduler, QtScheduler, Scheduler
from .selection import SelectionManager
from .serializer import ProjectSerializer
from .signals import DocumentSignals
from .storage import FileStorage, StorageBackend, WriteResult

__all__ = [
    "Artifact",
    "ArtifactKind",
    "CollectionActions",
    "CollectionStore",
    "DirtyTracker",
    "DocumentEngine",
    "DocumentSignals",
    "EditorViewState",
    "FilePicker",
    "FileStorage",
    "InvalidDocumentFormat",
    "LocalizationFile",
    "LocalizationFileRef",
    "ManualScheduler",
    "ModSettings",
    "MutationOutcome",
    "MutationResult",
    "OpenDialogResult",
    "PROJECT_EXTENSION",
    "PersistencePipeline",
    "ProjectDocument",
    "ProjectError",
    "ProjectMetadata",
    "ProjectSerializer",
    "QtScheduler",
    "SaveDialogResult",
    "SaveResult",
    "SaveTrigger",
    "Scheduler",
    "ScriptFile",
    "SelectionManager",
    "SelectionState",
    "StorageBackend",
    "StorageError",
    "StorageReadFailed",
    "StorageUnavailable",
    "StorageWriteFailed",
    "UIFile",
    "UIFileType",
    "UnknownArtifact",
    "WeaponFile",
    "WriteResult",
    "create_default_document",
]
