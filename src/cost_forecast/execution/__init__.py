"""Job execution: the fetch worker and the bounded scheduler."""

from cost_forecast.execution.fetch_worker import FetchWorker, JobOutcome
from cost_forecast.execution.scheduler import Scheduler

__all__ = ["FetchWorker", "JobOutcome", "Scheduler"]
