"""
Qt plumbing for running sync engine calls off the calling thread.

A worker wraps a single engine call. Its signals carry status lines,
per-item progress, the result and failures to whoever is listening.
Cancellation is a threading.Event shared with the engine, so it can
also come from outside Qt (a Ctrl+C handler, for example).
"""

from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QObject, Qt, QThread, pyqtSignal, pyqtSlot

from contentsync.core.models import SyncProgress


class WorkerState(Enum):
    """State of a worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


class WorkerSignals(QObject):
    """Signals emitted by a worker, from the thread it runs on."""

    started = pyqtSignal()

    status = pyqtSignal(str)

    # SyncProgress before each item
    progress = pyqtSignal(object)

    # Result of a run that was not cancelled
    finished = pyqtSignal(object)

    # (error type, message)
    failed = pyqtSignal(str, str)

    # Partial result of a cancelled run
    cancelled = pyqtSignal(object)

    # Last signal of every run, whatever the outcome
    done = pyqtSignal()


class BaseWorker(QObject):
    """
    Base class for workers. Subclasses implement `do_work`.

    `run` may be called directly (it then blocks) or through
    `start_in_thread`.
    """

    def __init__(
        self,
        cancel_event: Optional[threading.Event] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.signals = WorkerSignals()
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.result: Any = None
        self.exception: Optional[Exception] = None
        self._state = WorkerState.PENDING
        self._mutex = QMutex()

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    def _set_state(self, state: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = state

    @property
    def error(self) -> Optional[tuple[str, str]]:
        """(error type, message) after a failure."""
        if self.exception is None:
            return None
        return type(self.exception).__name__, str(self.exception)

    def cancel(self) -> None:
        """Request cancellation. The engine stops at its next item."""
        self.cancel_event.set()
        with QMutexLocker(self._mutex):
            if self._state == WorkerState.RUNNING:
                self._state = WorkerState.CANCELLING

    @pyqtSlot()
    def run(self) -> None:
        self._set_state(WorkerState.RUNNING)
        self.signals.started.emit()

        try:
            self.result = self.do_work()
        except Exception as e:
            logging.error(f"{type(self).__name__} - {type(e).__name__}: {e}")
            self.exception = e
            self._set_state(WorkerState.FAILED)
            self.signals.failed.emit(type(e).__name__, str(e))
        else:
            if self.cancel_event.is_set():
                self._set_state(WorkerState.CANCELLED)
                self.signals.cancelled.emit(self.result)
            else:
                self._set_state(WorkerState.COMPLETED)
                self.signals.finished.emit(self.result)
        finally:
            self.signals.done.emit()

    def do_work(self) -> Any:
        raise NotImplementedError

    def report_status(self, message: str) -> None:
        self.signals.status.emit(message)

    def report_progress(self, progress: SyncProgress) -> None:
        self.signals.progress.emit(progress)


def start_in_thread(worker: BaseWorker, parent: Optional[QObject] = None) -> QThread:
    """
    Run a worker on a new QThread.

    The thread quits as soon as the worker is done, without waiting for
    the caller's event loop. Keep a reference to the returned thread
    until `wait()` returns.
    """
    thread = QThread(parent)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.signals.done.connect(thread.quit, Qt.ConnectionType.DirectConnection)
    thread.start()
    return thread
