"""Run forecast jobs on a thread pool with a hard cap on in-flight jobs."""

from __future__ import annotations

import signal
import threading
import time
import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Protocol, Sequence

from loguru import logger

from cost_forecast.errors import JobError
from cost_forecast.execution.fetch_worker import JobOutcome
from cost_forecast.models import Job
from cost_forecast.tracking import JobResult, JobTracker, ProgressTracker, ResultAggregator


class Worker(Protocol):
    def run(self, job: Job) -> JobOutcome:
        ...


class Scheduler:
    """Drive every job through *worker* with at most N running at once.

    A bounded semaphore gates submission, so the pool never holds more
    than N pending-or-running jobs and nothing is queued ahead of a free
    slot.  Once the run is cancelled (SIGINT/SIGTERM or :meth:`cancel`),
    no new jobs start; jobs already running finish their current attempt.
    Each job's terminal outcome is reported exactly once to the progress
    tracker, the aggregator and the job tracker.
    """

    def __init__(
        self,
        worker: Worker,
        progress: ProgressTracker,
        aggregator: ResultAggregator,
        *,
        tracker: Optional[JobTracker] = None,
        cancel_event: Optional[threading.Event] = None,
        install_signal_handlers: bool = True,
        poll_interval: float = 0.1,
    ):
        self.worker = worker
        self.progress = progress
        self.aggregator = aggregator
        self.tracker = tracker
        self.cancel_event = cancel_event or threading.Event()
        self.install_signal_handlers = install_signal_handlers
        self.poll_interval = poll_interval
        self.job_errors: List[JobError] = []
        self._errors_lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()

    # ------------------------------------------------------------------

    def run_all(self, jobs: Sequence[Job], concurrency_limit: int = 10) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        if not jobs:
            return

        logger.info(f"Running {len(jobs)} jobs (max_parallel={concurrency_limit})")
        slots = threading.BoundedSemaphore(concurrency_limit)
        futures: List[Future] = []

        with self._signal_handlers(), ThreadPoolExecutor(
            max_workers=concurrency_limit, thread_name_prefix="forecast",
        ) as pool:
            for job in jobs:
                if not self._acquire_slot(slots):
                    break
                futures.append(pool.submit(self._execute, job, slots))

        # Surface scheduler bugs; worker failures were already recorded.
        for fut in futures:
            fut.result()

        not_started = jobs[len(futures):]
        if not_started:
            logger.warning(f"Run cancelled: {len(not_started)} jobs were not started")
            for job in not_started:
                self._record(
                    job,
                    JobOutcome([], False, 0, error_message="cancelled before start", cancelled=True),
                    status="cancelled",
                )

    def _acquire_slot(self, slots: threading.BoundedSemaphore) -> bool:
        """Block until a slot frees up; ``False`` once the run is cancelled."""
        while not self.cancel_event.is_set():
            if slots.acquire(timeout=self.poll_interval):
                if self.cancel_event.is_set():
                    slots.release()
                    return False
                return True
        return False

    def _execute(self, job: Job, slots: threading.BoundedSemaphore) -> None:
        started = datetime.now()
        t0 = time.perf_counter()
        try:
            try:
                outcome = self.worker.run(job)
                status = "success" if outcome.ok else ("cancelled" if outcome.cancelled else "failed")
                tb = None
            except Exception as exc:
                logger.exception(f"Worker crashed on {job.job_id}")
                outcome = JobOutcome([], False, error_message=str(exc))
                status = "error"
                tb = traceback.format_exc()
        finally:
            slots.release()

        self._record(
            job, outcome, status=status,
            started=started, duration=time.perf_counter() - t0, error_traceback=tb,
        )

    def _record(
        self,
        job: Job,
        outcome: JobOutcome,
        *,
        status: str,
        started: Optional[datetime] = None,
        duration: Optional[float] = None,
        error_traceback: Optional[str] = None,
    ) -> None:
        written = self.aggregator.append(outcome.rows) if outcome.ok else 0
        self.progress.on_job_complete(outcome.ok)

        if not outcome.ok:
            err = JobError(job, outcome.error_message or status)
            with self._errors_lock:
                self.job_errors.append(err)
            if status != "cancelled":
                logger.warning(f"Job failed: {err}")

        if self.tracker is not None:
            self.tracker.add_result(JobResult(
                job_id=job.job_id,
                dimension=job.dimension,
                value=job.value,
                metric=job.metric,
                status=status,
                attempts=outcome.attempts,
                rows=written,
                start_time=started.isoformat() if started else None,
                end_time=datetime.now().isoformat() if started else None,
                duration_sec=duration,
                retry_delays=outcome.retry_delays or None,
                error_message=outcome.error_message,
                error_traceback=error_traceback,
            ))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        """Turn SIGINT/SIGTERM into cancellation for the duration of a run.

        Only the main thread may install handlers; elsewhere this is a no-op.
        """
        if not self.install_signal_handlers or threading.current_thread() is not threading.main_thread():
            yield
            return

        def _handler(signum, frame):
            self.cancel_event.set()

        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.getsignal(sig)
            signal.signal(sig, _handler)
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
