"""Shared fixtures for modstudio tests."""

import sys
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import pytest
from PySide6.QtCore import QCoreApplication, QSettings

from modstudio.project import DocumentEngine, ManualScheduler, StorageBackend, WriteResult
from modstudio.project.errors import StorageError, StorageReadFailed
from modstudio.project.picker import FilePicker, OpenDialogResult, SaveDialogResult
from modstudio.project.storage import ReadResult
from modstudio.settings import AppSettings


class MemoryStorage(StorageBackend):
    """Storage fake that keeps files in a dict and records every write."""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.writes: List[Tuple[str, bytes]] = []
        self.fail_with: Optional[StorageError] = None

    def write(self, path: str, data: bytes) -> WriteResult:
        if self.fail_with is not None:
            raise self.fail_with
        self.files[path] = data
        self.writes.append((path, data))
        return WriteResult(path=path, original_size=len(data), written_size=len(data) // 2)

    def read(self, path: str) -> ReadResult:
        if path not in self.files:
            raise StorageReadFailed(f"No such file: {path}", path=path)
        return ReadResult(path=path, data=self.files[path], compressed=False)


class ScriptedPicker(FilePicker):
    """Picker answering dialogs from queued responses (canceled when empty)."""

    def __init__(self) -> None:
        self.save_answers: List[Optional[str]] = []
        self.open_answers: List[Tuple[str, ...]] = []
        self.save_requests: List[Tuple[str, str]] = []

    def ask_save_path(self, default_name: str, extension: str) -> SaveDialogResult:
        self.save_requests.append((default_name, extension))
        if not self.save_answers:
            return SaveDialogResult(canceled=True)
        path = self.save_answers.pop(0)
        return SaveDialogResult(canceled=path is None, path=path)

    def ask_open_paths(self, extensions: Sequence[str]) -> OpenDialogResult:
        if not self.open_answers:
            return OpenDialogResult(canceled=True)
        return OpenDialogResult(canceled=False, paths=self.open_answers.pop(0))


class RecentRecorder:
    """Minimal recent-documents store."""

    def __init__(self) -> None:
        self.added: List[Tuple[str, str]] = []

    def add(self, name: str, path: str) -> None:
        self.added.append((name, str(path)))


@pytest.fixture(scope="session", autouse=True)
def qt_app() -> Iterator[QCoreApplication]:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    yield app


@pytest.fixture
def qsettings(tmp_path: Path) -> QSettings:
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def app_settings(qsettings: QSettings) -> AppSettings:
    return AppSettings(profile="test", settings=qsettings)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def picker() -> ScriptedPicker:
    return ScriptedPicker()


@pytest.fixture
def recent() -> RecentRecorder:
    return RecentRecorder()


@pytest.fixture
def engine(
    storage: MemoryStorage,
    picker: ScriptedPicker,
    scheduler: ManualScheduler,
    recent: RecentRecorder,
) -> DocumentEngine:
    return DocumentEngine(
        storage=storage,
        file_picker=picker,
        scheduler=scheduler,
        recent_documents=recent,  # type: ignore[arg-type]
    )


@pytest.fixture
def saved_engine(engine: DocumentEngine, picker: ScriptedPicker) -> DocumentEngine:
    """Engine whose document already has a backing path."""
    picker.save_answers.append("/mods/project.r5vproj")
    assert engine.save_as()
    return engine
