"""Time-bounded memo of dimension value enumerations."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from loguru import logger

from cost_forecast.errors import DimensionLookupError, RemoteAPIError
from cost_forecast.models import TimeRange
from cost_forecast.remote import ForecastAPI

DEFAULT_TTL_SEC = 60 * 60


@dataclass(frozen=True)
class CacheEntry:
    values: List[str]
    fetched_at: float


class ValueCache:
    """Memoize ``enumerate_values`` per dimension for *ttl_sec* seconds.

    Filled before scheduling starts and only read afterwards, so it is
    not locked.
    """

    def __init__(
        self,
        api: ForecastAPI,
        lookback: TimeRange,
        *,
        ttl_sec: float = DEFAULT_TTL_SEC,
        rate_limit_sec: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api = api
        self.lookback = lookback
        self.ttl_sec = ttl_sec
        self.rate_limit_sec = rate_limit_sec
        self._clock = clock
        self._sleep = sleep
        self._entries: Dict[str, CacheEntry] = {}

    def _fresh(self, dimension: str) -> Optional[CacheEntry]:
        entry = self._entries.get(dimension)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_sec:
            del self._entries[dimension]
            return None
        return entry

    def get_values(self, dimension: str) -> List[str]:
        """Return the ordered values of *dimension*, calling the API only on a miss.

        Raises:
            DimensionLookupError: the remote enumeration failed.
        """
        entry = self._fresh(dimension)
        if entry is not None:
            logger.debug(f"Using cached values for dimension: {dimension}")
            return list(entry.values)

        if self.rate_limit_sec > 0:
            self._sleep(self.rate_limit_sec)
        try:
            raw = self.api.enumerate_values(dimension, self.lookback)
        except RemoteAPIError as e:
            raise DimensionLookupError(dimension, str(e)) from e

        values = [v for v in (raw or []) if v and v.strip()]
        self._entries[dimension] = CacheEntry(values=values, fetched_at=self._clock())
        if values:
            logger.debug(f"Fetched {len(values)} values for dimension: {dimension}")
        return list(values)

    def invalidate(self, dimension: Optional[str] = None) -> None:
        if dimension is None:
            self._entries.clear()
        else:
            self._entries.pop(dimension, None)
