"""Collect step: expand the job space and fetch every forecast.

This is the orchestrator behind ``cost-forecast fetch``.  It owns all
run state (job list, counters, aggregator) for the lifetime of one call;
nothing is persisted across runs.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from cost_forecast.catalog import DIMENSIONS, METRICS
from cost_forecast.config import ForecastConfig
from cost_forecast.errors import ConfigurationError, JobError, NoJobsError
from cost_forecast.execution import FetchWorker, Scheduler
from cost_forecast.models import CollectionRequest, Job, TimeRange
from cost_forecast.planning import JobExpander, ValueCache
from cost_forecast.remote import CostExplorerClient, ForecastAPI
from cost_forecast.tracking import (
    JobTracker,
    ProgressSnapshot,
    ProgressTracker,
    ResultAggregator,
)


@dataclass
class RunPaths:
    output_dir: str
    csv_path: str
    log_path: str

    @classmethod
    def create(cls, base_dir: str, timestamp: Optional[str] = None) -> "RunPaths":
        """Make ``<base_dir>/<timestamp>/`` and name the run's files inside it."""
        timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = os.path.join(base_dir, timestamp)
        os.makedirs(output_dir, exist_ok=True)
        return cls(
            output_dir=output_dir,
            csv_path=os.path.join(output_dir, f"forecast_{timestamp}.csv"),
            log_path=os.path.join(output_dir, f"forecast_{timestamp}.log"),
        )


@dataclass
class CollectionResult:
    output_path: str
    total_rows: int
    failed_jobs: int
    total_jobs: int
    output_dir: str = ""
    skipped_dimensions: Dict[str, str] = field(default_factory=dict)
    job_errors: List[JobError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded_jobs(self) -> int:
        return self.total_jobs - self.failed_jobs


def validate_request(request: CollectionRequest) -> None:
    """Reject empty or unknown selections before anything touches the API."""
    if not request.dimensions:
        raise ConfigurationError("No dimensions selected")
    if not request.metrics:
        raise ConfigurationError("No metrics selected")
    unknown = [m for m in request.metrics if m not in METRICS]
    if unknown:
        raise ConfigurationError(f"Unknown metrics: {', '.join(unknown)}")
    unknown = [d for d in request.dimensions if d not in DIMENSIONS]
    if unknown:
        raise ConfigurationError(f"Unknown dimensions: {', '.join(unknown)}")


def build_client(cfg: ForecastConfig) -> CostExplorerClient:
    return CostExplorerClient(
        region=cfg.aws.region,
        profile=cfg.aws.profile,
        prediction_interval_level=cfg.collection.prediction_interval_level,
    )


def plan_jobs(
    request: CollectionRequest,
    cfg: ForecastConfig,
    api: ForecastAPI,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[Job], JobExpander]:
    """Resolve dimension values and expand the job list.

    Raises:
        ConfigurationError: empty or unknown selection.
        NoJobsError: every dimension resolved to zero values.
    """
    validate_request(request)
    cc = cfg.collection
    cache = ValueCache(
        api,
        TimeRange.last_days(cc.lookback_days),
        ttl_sec=cc.cache_ttl_minutes * 60,
        rate_limit_sec=cc.rate_limit_sec,
        sleep=sleep,
    )
    expander = JobExpander(cache, request.time_range, request.granularity)
    jobs = expander.expand(request.dimensions, request.metrics)
    if not jobs:
        raise NoJobsError("No forecast jobs to process: no values found for any selected dimension")
    logger.info(f"Total forecast jobs to process: {len(jobs)}")
    return jobs, expander


def run_forecast_collection(
    request: CollectionRequest,
    cfg: ForecastConfig,
    *,
    api: Optional[ForecastAPI] = None,
    paths: Optional[RunPaths] = None,
    on_progress: Optional[Callable[[ProgressSnapshot], None]] = None,
    cancel_event: Optional[threading.Event] = None,
    install_signal_handlers: bool = True,
    backoff_wait: Optional[Callable[[float], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CollectionResult:
    """Fetch forecasts for every (dimension, value, metric) in *request*.

    Failed jobs are counted and reported, never fatal.  A cancelled run
    keeps the rows collected so far and returns with ``cancelled`` set.

    Raises:
        ConfigurationError: bad selection or settings (checked before the
            client is built or any remote call is made).
        RemoteAPIError: the AWS client could not be created.
        AggregationError: the run finished without collecting any rows.
    """
    validate_request(request)
    cancel_event = cancel_event or threading.Event()
    cc = cfg.collection
    if cc.max_parallel < 1:
        raise ConfigurationError(f"max_parallel must be >= 1, got {cc.max_parallel}")

    api = api or build_client(cfg)
    try:
        worker = FetchWorker(
            api,
            max_retries=cc.max_retries,
            base_delay=cc.base_delay_sec,
            rate_limit_sec=cc.rate_limit_sec,
            cancel_event=cancel_event,
            backoff_wait=backoff_wait,
            sleep=sleep,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid collection settings: {e}") from e

    jobs, expander = plan_jobs(request, cfg, api, sleep=sleep)

    paths = paths or RunPaths.create(cfg.output.dir)
    tracker = JobTracker(paths.output_dir)
    progress = ProgressTracker(len(jobs))
    if on_progress is not None:
        progress.subscribe(on_progress)

    logger.info("Starting parallel forecast generation...")
    with ResultAggregator(paths.csv_path) as aggregator:
        scheduler = Scheduler(
            worker, progress, aggregator,
            tracker=tracker,
            cancel_event=cancel_event,
            install_signal_handlers=install_signal_handlers,
        )
        try:
            scheduler.run_all(jobs, cc.max_parallel)
        finally:
            tracker.print_summary()
            tracker.save_reports()
        if scheduler.cancelled:
            # partial output is still a valid result
            total_rows = aggregator.row_count
            aggregator.close()
        else:
            total_rows = aggregator.finalize()

    snap = progress.snapshot()
    if snap.failed:
        logger.warning(f"Failed jobs: {snap.failed}")
    if scheduler.cancelled:
        logger.warning(f"Run cancelled: kept {total_rows} rows in {paths.csv_path}")
    else:
        logger.success(f"Data collection completed: {total_rows} rows in {paths.csv_path}")

    return CollectionResult(
        output_path=paths.csv_path,
        total_rows=total_rows,
        failed_jobs=snap.failed,
        total_jobs=snap.total,
        output_dir=paths.output_dir,
        skipped_dimensions=dict(expander.skipped_dimensions),
        job_errors=list(scheduler.job_errors),
        cancelled=scheduler.cancelled,
    )
