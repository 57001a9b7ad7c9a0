"""Tests for the persistence pipeline and its outbox."""

from typing import List

import pytest

from modstudio.project.dirty import DirtyTracker
from modstudio.project.document import ProjectDocument, create_default_document
from modstudio.project.errors import StorageUnavailable, StorageWriteFailed
from modstudio.project.persistence import PersistencePipeline, PipelineState, SaveTrigger
from modstudio.project.scheduler import ManualScheduler
from modstudio.project.serializer import ProjectSerializer
from modstudio.project.signals import DocumentSignals

from .conftest import MemoryStorage

PATH = "/mods/project.r5vproj"


class Harness:
    def __init__(self) -> None:
        self.document: ProjectDocument = create_default_document("Pipeline")
        self.storage = MemoryStorage()
        self.dirty = DirtyTracker()
        self.scheduler = ManualScheduler()
        self.signals = DocumentSignals()
        self.pipeline = PersistencePipeline(
            storage=self.storage,
            serializer=ProjectSerializer(),
            dirty=self.dirty,
            scheduler=self.scheduler,
            document_provider=lambda: self.document,
            signals=self.signals,
        )


@pytest.fixture
def harness() -> Harness:
    return Harness()


class TestExplicitSave:
    """Test explicit saves."""

    def test_save_writes_and_clears_dirty(self, harness: Harness) -> None:
        harness.dirty.mark_dirty("script_1")
        harness.dirty.mark_structural()

        result = harness.pipeline.save(PATH)

        assert result.success
        assert result.trigger is SaveTrigger.EXPLICIT
        assert harness.storage.files[PATH]
        assert harness.pipeline.backing_path == PATH
        assert not harness.dirty.has_unsaved_changes
        assert harness.pipeline.state is PipelineState.IDLE

    def test_save_without_path_fails(self, harness: Harness) -> None:
        result = harness.pipeline.save()
        assert not result.success
        assert result.path is None
        assert harness.storage.writes == []

    def test_failure_preserves_dirty_state(self, harness: Harness) -> None:
        failures: List[str] = []
        harness.signals.save_failed.connect(lambda path, msg: failures.append(path))
        harness.dirty.mark_dirty("script_1")
        harness.storage.fail_with = StorageWriteFailed("disk full", path=PATH)

        result = harness.pipeline.save(PATH)

        assert not result.success
        assert "disk full" in (result.error or "")
        assert harness.dirty.dirty_ids == frozenset({"script_1"})
        assert harness.pipeline.backing_path is None
        assert failures == [PATH]

    def test_failure_is_not_retried(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.storage.fail_with = StorageUnavailable("offline", path=PATH)

        harness.pipeline.request_autosave()
        harness.scheduler.run_pending()

        assert harness.pipeline.pending == []
        assert harness.scheduler.pending == 0

    def test_save_finished_signal(self, harness: Harness) -> None:
        finished: List[int] = []
        harness.signals.save_finished.connect(lambda path, size: finished.append(size))
        result = harness.pipeline.save(PATH)
        assert finished == [result.written_size]


class TestAutosave:
    """Test deferred and collapsed auto-saves."""

    def test_autosave_needs_backing_path(self, harness: Harness) -> None:
        assert not harness.pipeline.request_autosave()
        assert harness.scheduler.pending == 0

    def test_autosave_is_deferred(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH

        assert harness.pipeline.request_autosave()
        assert harness.storage.writes == []

        harness.scheduler.run_pending()
        assert len(harness.storage.writes) == 1

    def test_repeated_requests_collapse(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        for _ in range(5):
            harness.pipeline.request_autosave()

        assert len(harness.pipeline.pending) == 1
        harness.scheduler.run_pending()
        assert len(harness.storage.writes) == 1

    def test_autosave_writes_latest_state(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.pipeline.request_autosave()
        harness.document.metadata.name = "Renamed later"

        harness.scheduler.run_pending()

        saved = ProjectSerializer().loads(harness.storage.files[PATH])
        assert saved.metadata.name == "Renamed later"

    def test_explicit_save_replaces_pending_autosave(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.pipeline.request_autosave()

        harness.pipeline.save()
        harness.scheduler.run_pending()

        assert len(harness.storage.writes) == 1

    def test_save_during_save_is_queued(self, harness: Harness) -> None:
        """A handler saving again while a write runs never interleaves writes."""
        results = []

        def save_again(path: str) -> None:
            if len(results) == 0:
                results.append(harness.pipeline.save(path))

        harness.signals.save_started.connect(save_again)
        harness.pipeline.save(PATH)

        assert results[0].queued
        assert [p for p, _ in harness.storage.writes] == [PATH, PATH]

    def test_change_during_autosave_stays_dirty(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.dirty.mark_structural()
        harness.signals.save_started.connect(lambda path: harness.dirty.mark_dirty("late"))

        harness.pipeline.request_autosave()
        harness.scheduler.run_pending()

        assert harness.dirty.is_dirty("late")
        assert harness.dirty.has_unsaved_changes


class TestClose:
    """Test closing with pending saves."""

    def test_close_flushes_pending(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.dirty.mark_structural()
        harness.pipeline.request_autosave()

        assert harness.pipeline.close()
        assert len(harness.storage.writes) == 1

    def test_close_reports_unsaved_work(self, harness: Harness) -> None:
        harness.dirty.mark_dirty("script_1")
        assert not harness.pipeline.close()

    def test_discard_pending(self, harness: Harness) -> None:
        harness.pipeline.backing_path = PATH
        harness.pipeline.request_autosave()
        assert harness.pipeline.discard_pending() == 1
        harness.scheduler.run_pending()
        assert harness.storage.writes == []
