"""Job tracking, progress counters and result aggregation."""

from cost_forecast.tracking.aggregator import CSV_HEADER, ResultAggregator
from cost_forecast.tracking.job_result import JobResult
from cost_forecast.tracking.job_tracker import JobTracker
from cost_forecast.tracking.progress import ProgressLogger, ProgressSnapshot, ProgressTracker

__all__ = [
    "CSV_HEADER",
    "JobResult",
    "JobTracker",
    "ProgressLogger",
    "ProgressSnapshot",
    "ProgressTracker",
    "ResultAggregator",
]
