"""Thread-safe progress counters shared by concurrently finishing jobs."""

from __future__ import annotations

import threading
from typing import Callable, List, NamedTuple

from loguru import logger


class ProgressSnapshot(NamedTuple):
    completed: int
    total: int
    failed: int

    @property
    def percent(self) -> int:
        return self.completed * 100 // self.total if self.total else 100

    @property
    def succeeded(self) -> int:
        return self.completed - self.failed


ProgressListener = Callable[[ProgressSnapshot], None]


class ProgressTracker:
    """Completed/failed counters guarded by a single lock.

    Both counters change inside one critical section, so a snapshot never
    shows a completion without its matching failure count.
    """

    def __init__(self, total: int):
        if total < 0:
            raise ValueError("total must be >= 0")
        self._total = total
        self._completed = 0
        self._failed = 0
        self._lock = threading.Lock()
        self._listeners: List[ProgressListener] = []

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def on_job_complete(self, ok: bool) -> ProgressSnapshot:
        with self._lock:
            if self._completed >= self._total:
                raise RuntimeError(
                    f"More completions than jobs ({self._total}); a job was reported twice"
                )
            self._completed += 1
            if not ok:
                self._failed += 1
            snap = ProgressSnapshot(self._completed, self._total, self._failed)

        for listener in self._listeners:
            try:
                listener(snap)
            except Exception:
                logger.exception("Progress listener failed")
        return snap

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(self._completed, self._total, self._failed)


class ProgressLogger:
    """Listener that logs one line each time progress crosses a *step_pct* boundary."""

    def __init__(self, step_pct: int = 10, label: str = "Processing forecasts"):
        self.step_pct = max(1, step_pct)
        self.label = label
        self._last_bucket = -1
        self._lock = threading.Lock()

    def __call__(self, snap: ProgressSnapshot) -> None:
        bucket = snap.percent // self.step_pct
        with self._lock:
            if bucket <= self._last_bucket:
                return
            self._last_bucket = bucket
        logger.info(
            f"{self.label}: {snap.percent:3d}% ({snap.completed}/{snap.total}, "
            f"{snap.failed} failed)"
        )
