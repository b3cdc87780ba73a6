import pytest

from conftest import FakeForecastAPI

from cost_forecast.errors import DimensionLookupError
from cost_forecast.planning import ValueCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_lookup_within_ttl_hits_remote_once(time_range, clock):
    api = FakeForecastAPI(values={"SERVICE": ["EC2", "S3"]})
    cache = ValueCache(api, time_range, clock=clock)

    assert cache.get_values("SERVICE") == ["EC2", "S3"]
    clock.now += 59 * 60
    assert cache.get_values("SERVICE") == ["EC2", "S3"]
    assert api.enumerate_calls == ["SERVICE"]


def test_lookup_after_ttl_refreshes(time_range, clock):
    api = FakeForecastAPI(values={"SERVICE": ["EC2"]})
    cache = ValueCache(api, time_range, clock=clock)

    cache.get_values("SERVICE")
    clock.now += 61 * 60
    api.values["SERVICE"] = ["EC2", "Lambda"]
    assert cache.get_values("SERVICE") == ["EC2", "Lambda"]
    assert api.enumerate_calls == ["SERVICE", "SERVICE"]


def test_empty_result_is_empty_list_and_cached(time_range, clock):
    api = FakeForecastAPI(values={})
    cache = ValueCache(api, time_range, clock=clock)

    assert cache.get_values("TENANCY") == []
    assert cache.get_values("TENANCY") == []
    assert api.enumerate_calls == ["TENANCY"]


def test_blank_values_are_dropped(time_range):
    api = FakeForecastAPI(values={"AZ": ["us-east-1a", "", "  ", "us-east-1b"]})
    cache = ValueCache(api, time_range)
    assert cache.get_values("AZ") == ["us-east-1a", "us-east-1b"]


def test_remote_error_raises_lookup_error(time_range):
    api = FakeForecastAPI(lookup_errors={"SERVICE"})
    cache = ValueCache(api, time_range)

    with pytest.raises(DimensionLookupError) as exc_info:
        cache.get_values("SERVICE")
    assert isinstance(exc_info.value, LookupError)
    assert exc_info.value.dimension == "SERVICE"


def test_failed_lookup_is_not_cached(time_range):
    api = FakeForecastAPI(values={"SERVICE": ["EC2"]}, lookup_errors={"SERVICE"})
    cache = ValueCache(api, time_range)
    with pytest.raises(DimensionLookupError):
        cache.get_values("SERVICE")

    api.lookup_errors.clear()
    assert cache.get_values("SERVICE") == ["EC2"]
    assert len(api.enumerate_calls) == 2


def test_rate_limit_applies_only_to_remote_calls(time_range, clock):
    sleeps = []
    api = FakeForecastAPI(values={"SERVICE": ["EC2"]})
    cache = ValueCache(api, time_range, rate_limit_sec=0.5, clock=clock, sleep=sleeps.append)

    cache.get_values("SERVICE")
    cache.get_values("SERVICE")
    assert sleeps == [0.5]


def test_returned_list_is_a_copy(time_range):
    api = FakeForecastAPI(values={"SERVICE": ["EC2"]})
    cache = ValueCache(api, time_range)
    cache.get_values("SERVICE").append("mutated")
    assert cache.get_values("SERVICE") == ["EC2"]
