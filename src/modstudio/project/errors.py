"""
Exception types for the project document engine.
"""

from typing import List, Optional


class ProjectError(Exception):
    """Base class for project document errors."""
    pass


class InvalidDocumentFormat(ProjectError):
    """Raised when persisted project data cannot be turned back into a document."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        details = "\n  - ".join(self.errors)
        return f"{base}:\n  - {details}"


class StorageError(ProjectError):
    """Base class for failures reported by the storage collaborator."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class StorageUnavailable(StorageError):
    """No storage backend (or no target path) is available for the operation."""
    pass


class StorageWriteFailed(StorageError):
    """Writing the project bytes failed."""
    pass


class StorageReadFailed(StorageError):
    """Reading the project bytes failed."""
    pass


class UnknownArtifact(ProjectError, KeyError):
    """Lookup of an artifact id that is not part of the collection."""

    def __init__(self, kind: str, artifact_id: str):
        super().__init__(f"No {kind} artifact with id '{artifact_id}'")
        self.kind = kind
        self.artifact_id = artifact_id

    def __str__(self) -> str:
        return str(self.args[0])
