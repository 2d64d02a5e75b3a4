"""
Background workers for advisory calls.

HTTP requests must not block the event loop, so each advisory call runs as
a QRunnable on the global QThreadPool. Results come back through a signal
that carries the request channel and token; the receiving widget checks the
token with its RequestTracker and drops stale answers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from src.exceptions import VisionTrackerError

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    finished = Signal(str, int, object)   # channel, token, result
    failed = Signal(str, int, str)        # channel, token, message


class AdvisoryWorker(QRunnable):
    def __init__(self, channel: str, token: int,
                 fn: Callable[..., Any], *args, **kwargs) -> None:
        super().__init__()
        self.channel = channel
        self.token = token
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except VisionTrackerError as exc:
            logger.warning("Background %s call failed: %s", self.channel, exc)
            self.signals.failed.emit(self.channel, self.token, str(exc))
        else:
            self.signals.finished.emit(self.channel, self.token, result)


def submit(worker: AdvisoryWorker) -> AdvisoryWorker:
    QThreadPool.globalInstance().start(worker)
    return worker
