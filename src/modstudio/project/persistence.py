"""
Persistence pipeline: serializes the document and hands it to storage.

Save requests go through an outbox drained by a single consumer, so two
writes never overlap:

- explicit saves run immediately and replace any pending auto-save (they
  persist the latest state anyway)
- auto-saves are queued and drained at the next scheduling opportunity;
  repeated requests for the same path collapse into one

The document is serialized when an intent is executed, not when it is
queued, so a drained auto-save always writes the latest state.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, List, Optional

from .dirty import DirtyTracker
from .document import ProjectDocument
from .errors import StorageError
from .models import utc_now
from .scheduler import Scheduler
from .serializer import ProjectSerializer
from .signals import DocumentSignals
from .storage import StorageBackend


class PipelineState(Enum):
    IDLE = "idle"
    SAVING = "saving"


class SaveTrigger(Enum):
    """Why a save was requested."""

    EXPLICIT = "explicit"
    AUTO = "auto"


@dataclass
class PersistIntent:
    """One queued request to write the document."""

    path: str
    trigger: SaveTrigger
    requested_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save request.

    Attributes:
        success: True if the bytes reached storage
        path: Target path (None if no path was known)
        trigger: Explicit or automatic save
        written_size: Bytes written to storage
        original_size: Size of the serialized JSON before compression
        error: Failure message when ``success`` is False
        queued: The request was queued behind a running save
    """

    success: bool
    path: Optional[str]
    trigger: SaveTrigger
    written_size: int = 0
    original_size: int = 0
    error: Optional[str] = None
    queued: bool = False

    @property
    def accepted(self) -> bool:
        """True if the bytes reached storage or the write is queued to run next."""
        return self.success or self.queued


class PersistencePipeline:
    """Owns the backing path and every write to it."""

    def __init__(
        self,
        storage: StorageBackend,
        serializer: ProjectSerializer,
        dirty: DirtyTracker,
        scheduler: Scheduler,
        document_provider: Callable[[], ProjectDocument],
        signals: Optional[DocumentSignals] = None,
    ):
        """Initialize the pipeline.

        Args:
            storage: Storage backend receiving serialized bytes
            serializer: Document serializer
            dirty: Dirty tracker cleared on successful saves
            scheduler: Scheduler used to defer auto-saves
            document_provider: Returns the document to serialize
            signals: Optional signal hub for save notifications
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.storage = storage
        self.serializer = serializer
        self.dirty = dirty
        self.scheduler = scheduler
        self.document_provider = document_provider
        self.signals = signals

        self._state = PipelineState.IDLE
        self._queue: Deque[PersistIntent] = deque()
        self._drain_scheduled = False
        self._backing_path: Optional[str] = None
        self._last_result: Optional[SaveResult] = None

    # === STATE ===

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_saving(self) -> bool:
        return self._state is PipelineState.SAVING

    @property
    def backing_path(self) -> Optional[str]:
        """Path of the file the document was last loaded from or saved to."""
        return self._backing_path

    @backing_path.setter
    def backing_path(self, path: Optional[str]) -> None:
        self._backing_path = path

    @property
    def pending(self) -> List[PersistIntent]:
        """Queued intents in execution order."""
        return list(self._queue)

    @property
    def last_result(self) -> Optional[SaveResult]:
        return self._last_result

    # === REQUESTS ===

    def request_autosave(self) -> bool:
        """Queue an auto-save of the latest state to the backing path.

        Returns:
            False if there is no backing path, True if a save is pending
        """
        path = self._backing_path
        if path is None:
            return False

        if any(i.trigger is SaveTrigger.AUTO and i.path == path for i in self._queue):
            self.logger.debug(f"Auto-save to {path} already pending")
            return True

        self._queue.append(PersistIntent(path=path, trigger=SaveTrigger.AUTO))
        self._schedule_drain()
        return True

    def save(self, path: Optional[str] = None) -> SaveResult:
        """Write the document now.

        Pending auto-saves are dropped, since this write covers them. If a
        save is already running (a signal handler saving again), the request
        is queued behind it.

        Args:
            path: Target path (defaults to the backing path)
        """
        target = path or self._backing_path
        if target is None:
            self.logger.warning("Save requested but no file path is known")
            result = SaveResult(
                success=False, path=None, trigger=SaveTrigger.EXPLICIT,
                error="No file path to save to",
            )
            self._last_result = result
            return result

        dropped = [i for i in self._queue if i.trigger is SaveTrigger.AUTO]
        if dropped:
            self._queue = deque(i for i in self._queue if i.trigger is not SaveTrigger.AUTO)
            self.logger.debug(f"Explicit save replaces {len(dropped)} pending auto-save(s)")

        intent = PersistIntent(path=target, trigger=SaveTrigger.EXPLICIT)
        if self.is_saving:
            self._queue.append(intent)
            self._schedule_drain()
            return SaveResult(success=False, path=target, trigger=SaveTrigger.EXPLICIT, queued=True)

        result = self._execute(intent)
        self._drain()
        return result

    def flush(self) -> Optional[SaveResult]:
        """Execute every pending intent now.

        Returns:
            Result of the last executed intent (None if nothing was pending)
        """
        if self.is_saving:
            return None
        return self._drain()

    def discard_pending(self) -> int:
        """Drop every pending intent without writing.

        Returns:
            Number of intents dropped
        """
        count = len(self._queue)
        self._queue.clear()
        if count:
            self.logger.debug(f"Discarded {count} pending save(s)")
        return count

    def close(self) -> bool:
        """Flush pending saves before the document goes away.

        Returns:
            True if nothing unsaved remains
        """
        if self.is_saving:
            self.logger.warning("Closing while a save is running, unsaved work may be lost")
            return False

        self.flush()
        if self.dirty.has_unsaved_changes:
            self.logger.warning("Closing document with unsaved changes")
            return False
        return True

    # === EXECUTION ===

    def _schedule_drain(self) -> None:
        if self._drain_scheduled:
            return
        self._drain_scheduled = True
        self.scheduler.call_soon(self._on_scheduled_drain)

    def _on_scheduled_drain(self) -> None:
        self._drain_scheduled = False
        self._drain()

    def _drain(self) -> Optional[SaveResult]:
        result = None
        while self._queue and not self.is_saving:
            result = self._execute(self._queue.popleft())
        return result

    def _execute(self, intent: PersistIntent) -> SaveResult:
        self._state = PipelineState.SAVING
        revision = self.dirty.revision
        try:
            data = self.serializer.dumps(self.document_provider())
            if self.signals is not None:
                self.signals.save_started.emit(intent.path)
            try:
                written = self.storage.write(intent.path, data)
            except StorageError as e:
                self.logger.error(f"Failed to save project to {intent.path}: {e}")
                if self.signals is not None:
                    self.signals.save_failed.emit(intent.path, str(e))
                result = SaveResult(
                    success=False, path=intent.path, trigger=intent.trigger, error=str(e)
                )
                self._last_result = result
                return result
        finally:
            self._state = PipelineState.IDLE

        self._backing_path = intent.path
        self.dirty.clear_if_unchanged(revision)
        self.logger.info(
            f"Saved project to {intent.path} ({intent.trigger.value}): "
            f"{written.original_size} -> {written.written_size} bytes "
            f"({written.compression_ratio:.1f}% smaller)"
        )
        if self.signals is not None:
            self.signals.save_finished.emit(intent.path, written.written_size)

        result = SaveResult(
            success=True,
            path=intent.path,
            trigger=intent.trigger,
            written_size=written.written_size,
            original_size=written.original_size,
        )
        self._last_result = result
        return result
