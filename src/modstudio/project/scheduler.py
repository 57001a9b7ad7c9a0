"""
Deferred execution for auto-save.

Auto-save requests are never executed inside the mutation that caused them;
they run at the next scheduling opportunity. In the editor that is the next
Qt event loop iteration; tests and the CLI drain the queue explicitly.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque

from PySide6.QtCore import QTimer


class Scheduler(ABC):
    """Runs callbacks after the current call stack has returned."""

    @abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` to run at the next opportunity."""


class QtScheduler(Scheduler):
    """Defers callbacks to the Qt event loop."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        QTimer.singleShot(0, callback)


class ManualScheduler(Scheduler):
    """Queues callbacks until ``run_pending`` is called."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._queue: Deque[Callable[[], None]] = deque()

    @property
    def pending(self) -> int:
        """Number of queued callbacks."""
        return len(self._queue)

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    def run_pending(self) -> int:
        """Run queued callbacks in order, including ones queued while running.

        Returns:
            Number of callbacks executed
        """
        count = 0
        while self._queue:
            callback = self._queue.popleft()
            callback()
            count += 1
        if count:
            self.logger.debug(f"Ran {count} deferred callback(s)")
        return count
