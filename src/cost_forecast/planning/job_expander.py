"""Expand selected dimensions and metrics into the run's job list."""

from __future__ import annotations

from typing import Dict, List, Sequence, Set, Tuple

from loguru import logger

from cost_forecast.catalog import Granularity
from cost_forecast.errors import DimensionLookupError
from cost_forecast.models import Job, TimeRange
from cost_forecast.planning.value_cache import ValueCache


class JobExpander:
    """Cross product of each dimension's values with the selected metrics.

    Output order is dimension order, then value order, then metric order,
    so identical inputs and cache state give identical job lists.
    Dimensions that fail to resolve or have no values are skipped and
    listed in :attr:`skipped_dimensions`.
    """

    def __init__(self, cache: ValueCache, time_range: TimeRange, granularity: Granularity):
        self.cache = cache
        self.time_range = time_range
        self.granularity = granularity
        self.skipped_dimensions: Dict[str, str] = {}

    def expand(self, dimensions: Sequence[str], metrics: Sequence[str]) -> List[Job]:
        self.skipped_dimensions = {}
        jobs: List[Job] = []
        seen: Set[Tuple[str, str, str]] = set()

        for dimension in dimensions:
            try:
                values = self.cache.get_values(dimension)
            except DimensionLookupError as e:
                logger.warning(f"Skipping dimension {dimension}: value lookup failed ({e})")
                self.skipped_dimensions[dimension] = f"lookup failed: {e}"
                continue

            if not values:
                logger.warning(f"No values found for dimension: {dimension}")
                self.skipped_dimensions[dimension] = "no values"
                continue

            added = 0
            for value in values:
                for metric in metrics:
                    job = Job(dimension, value, metric, self.time_range, self.granularity)
                    if job.key in seen:
                        continue
                    seen.add(job.key)
                    jobs.append(job)
                    added += 1
            logger.info(f"Found {len(values)} values for {dimension}, adding {added} jobs")

        return jobs
