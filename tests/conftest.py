"""Shared fixtures: an in-memory Cost Explorer stand-in and fast configs."""

import threading
from datetime import date

import pytest
from loguru import logger

from cost_forecast.catalog import Granularity
from cost_forecast.config import ForecastConfig
from cost_forecast.errors import RemoteAPIError
from cost_forecast.models import ForecastPeriod, TimeRange


def make_periods(n, start_day=1):
    return [
        ForecastPeriod(
            start=f"2026-11-{start_day + i:02d}",
            end=f"2026-11-{start_day + i + 1:02d}",
            mean=f"{10 + i}.5",
            lower_bound=f"{8 + i}.0",
            upper_bound=f"{12 + i}.0",
        )
        for i in range(n)
    ]


class FakeForecastAPI:
    """Scriptable ForecastAPI.

    ``failures`` maps a job key ``(dimension, value, metric)`` to the number
    of calls that fail before one succeeds; ``-1`` fails forever.
    """

    def __init__(self, values=None, periods=None, failures=None,
                 lookup_errors=(), default_periods=1):
        self.values = values or {}
        self.periods = periods or {}
        self.failures = failures or {}
        self.lookup_errors = set(lookup_errors)
        self.default_periods = default_periods
        self.enumerate_calls = []
        self.forecast_calls = []
        self._lock = threading.Lock()

    def enumerate_values(self, dimension, lookback):
        with self._lock:
            self.enumerate_calls.append(dimension)
        if dimension in self.lookup_errors:
            raise RemoteAPIError(f"GetDimensionValues failed for {dimension}", code="AccessDenied")
        return list(self.values.get(dimension, []))

    def forecast(self, dimension, value, metric, time_range, granularity):
        key = (dimension, value, metric)
        with self._lock:
            self.forecast_calls.append(key)
            n = self.forecast_calls.count(key)
        fails = self.failures.get(key, 0)
        if fails < 0 or n <= fails:
            raise RemoteAPIError("GetCostForecast failed (ThrottlingException): Rate exceeded",
                                 code="ThrottlingException")
        return list(self.periods.get(key, make_periods(self.default_periods)))


@pytest.fixture
def time_range():
    return TimeRange(date(2026, 11, 1), date(2026, 12, 1))


@pytest.fixture
def granularity():
    return Granularity.DAILY


@pytest.fixture
def fake_api():
    return FakeForecastAPI(values={"SERVICE": ["EC2", "S3"], "REGION": ["us-east-1"]})


@pytest.fixture
def fast_cfg(tmp_path):
    cfg = ForecastConfig()
    cfg.collection.rate_limit_sec = 0.0
    cfg.collection.base_delay_sec = 0.001
    cfg.collection.max_parallel = 4
    cfg.output.dir = str(tmp_path / "output")
    return cfg


@pytest.fixture
def log_messages():
    messages = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)
