"""
File-picker collaborator used by save-as and open.

Cancellation is reported through the result, never raised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class SaveDialogResult:
    canceled: bool
    path: Optional[str] = None


@dataclass(frozen=True)
class OpenDialogResult:
    canceled: bool
    paths: Tuple[str, ...] = ()


class FilePicker(ABC):
    """Asks the user for project file locations."""

    @abstractmethod
    def ask_save_path(self, default_name: str, extension: str) -> SaveDialogResult:
        """Ask for a save location.

        Args:
            default_name: Suggested file name (e.g. ``"My Mod.r5vproj"``)
            extension: Project extension including the dot
        """

    @abstractmethod
    def ask_open_paths(self, extensions: Sequence[str]) -> OpenDialogResult:
        """Ask for one or more project files to open."""


class NullFilePicker(FilePicker):
    """Picker for headless use: every dialog is canceled."""

    def ask_save_path(self, default_name: str, extension: str) -> SaveDialogResult:
        return SaveDialogResult(canceled=True)

    def ask_open_paths(self, extensions: Sequence[str]) -> OpenDialogResult:
        return OpenDialogResult(canceled=True)
