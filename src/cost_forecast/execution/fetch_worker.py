"""Execute one forecast job with rate limiting and retry/backoff."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from loguru import logger

from cost_forecast.errors import RemoteAPIError
from cost_forecast.models import ForecastRow, Job
from cost_forecast.remote import ForecastAPI


@dataclass
class JobOutcome:
    """Terminal outcome of one job: the rows plus retry bookkeeping."""

    rows: List[ForecastRow]
    ok: bool
    attempts: int = 0
    retry_delays: List[float] = field(default_factory=list)
    error_message: Optional[str] = None
    cancelled: bool = False


class FetchWorker:
    """Fetch one job's forecast, retrying failed calls.

    Up to *max_retries* extra attempts follow the first one, separated by
    ``attempt * base_delay`` seconds (2, 4, 6 s by default).  A fixed
    *rate_limit_sec* pause precedes every remote call, and no new call is
    made once the run is cancelled.

    Backoff waits go through *backoff_wait*, which returns ``True`` when
    the run was cancelled; by default that is ``cancel_event.wait``.  The
    worker never touches shared state: callers get a :class:`JobOutcome`.
    """

    def __init__(
        self,
        api: ForecastAPI,
        *,
        max_retries: int = 3,
        base_delay: float = 2.0,
        rate_limit_sec: float = 0.5,
        cancel_event: Optional[threading.Event] = None,
        backoff_wait: Optional[Callable[[float], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if base_delay <= 0:
            raise ValueError("base_delay must be > 0")
        if rate_limit_sec < 0:
            raise ValueError("rate_limit_sec must be >= 0")
        self.api = api
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.rate_limit_sec = rate_limit_sec
        self.cancel_event = cancel_event or threading.Event()
        self._backoff_wait = backoff_wait or self.cancel_event.wait
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return attempt * self.base_delay

    def run(self, job: Job) -> JobOutcome:
        delays: List[float] = []
        last_error: Optional[str] = None
        max_attempts = self.max_retries + 1
        label = f"{job.dimension}={job.value}, metric={job.metric}"

        for attempt in range(1, max_attempts + 1):
            if self.rate_limit_sec > 0:
                self._sleep(self.rate_limit_sec)
            if self.cancel_event.is_set():
                logger.warning(f"Cancelled before attempt {attempt}: {label}")
                return JobOutcome(
                    [], False, attempt - 1, delays, last_error or "cancelled", cancelled=True,
                )
            try:
                periods = self.api.forecast(
                    job.dimension, job.value, job.metric, job.time_range, job.granularity,
                )
            except RemoteAPIError as e:
                last_error = str(e)
                if attempt == max_attempts:
                    break
                delay = self.backoff_delay(attempt)
                delays.append(delay)
                logger.warning(
                    f"Retry {attempt}/{self.max_retries} for {label} in {delay:.1f}s: {e}"
                )
                if self._backoff_wait(delay):
                    logger.warning(f"Cancelled while backing off: {label}")
                    return JobOutcome([], False, attempt, delays, last_error, cancelled=True)
                continue

            rows = [ForecastRow.from_period(job, p) for p in periods]
            logger.debug(f"Fetched {len(rows)} periods for {label} (attempt {attempt})")
            return JobOutcome(rows, True, attempt, delays)

        logger.error(
            f"Failed to fetch forecast after {self.max_retries} retries: {label}"
        )
        return JobOutcome([], False, max_attempts, delays, last_error)
