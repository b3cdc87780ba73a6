"""Job-space planning: dimension value lookup and job expansion."""

from cost_forecast.planning.job_expander import JobExpander
from cost_forecast.planning.value_cache import CacheEntry, ValueCache

__all__ = ["CacheEntry", "JobExpander", "ValueCache"]
