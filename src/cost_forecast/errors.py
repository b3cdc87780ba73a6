"""Error taxonomy for a forecast collection run.

Fatal errors (:class:`ConfigurationError`, :class:`AggregationError`)
propagate to the CLI and end the run with a non-zero exit code.
Dimension- and job-scoped errors are absorbed where they happen and only
show up in counters, warnings and the job reports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from cost_forecast.models import Job


class ForecastCollectionError(Exception):
    """Base exception for forecast collection errors."""
    pass


class ConfigurationError(ForecastCollectionError):
    """Nothing selected, or the selection is invalid. Raised before any scheduling."""
    pass


class NoJobsError(ConfigurationError):
    """Every selected dimension resolved to zero values, so there is no work."""
    pass


class RemoteAPIError(ForecastCollectionError):
    """A Cost Explorer / STS call failed (transport or service error)."""

    def __init__(self, message: str, code: Optional[str] = None,
                 original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.code = code
        self.original_exception = original_exception


class DimensionLookupError(ForecastCollectionError, LookupError):
    """Value enumeration for one dimension failed. The dimension is skipped."""

    def __init__(self, dimension: str, message: str):
        super().__init__(f"{dimension}: {message}")
        self.dimension = dimension


class JobError(ForecastCollectionError):
    """A single job failed after exhausting its retries."""

    def __init__(self, job: "Job", message: str):
        super().__init__(
            f"{job.dimension}={job.value}, metric={job.metric}: {message}"
        )
        self.job = job


class AggregationError(ForecastCollectionError):
    """The output artifact cannot be finalized (e.g. no rows were collected)."""
    pass


class UploadError(ForecastCollectionError):
    """Uploading the artifact failed. Does not invalidate the collected data."""
    pass
