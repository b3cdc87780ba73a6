from conftest import FakeForecastAPI

from cost_forecast.planning import JobExpander, ValueCache


def _expander(api, time_range, granularity):
    return JobExpander(ValueCache(api, time_range), time_range, granularity)


def test_job_count_is_values_times_metrics(time_range, granularity):
    api = FakeForecastAPI(values={
        "SERVICE": ["EC2", "S3", "Lambda"],
        "REGION": ["us-east-1", "eu-west-1"],
    })
    metrics = ["UNBLENDED_COST", "BLENDED_COST"]
    jobs = _expander(api, time_range, granularity).expand(["SERVICE", "REGION"], metrics)
    assert len(jobs) == (3 + 2) * 2


def test_expansion_order_is_dimension_value_metric(time_range, granularity):
    api = FakeForecastAPI(values={"SERVICE": ["EC2", "S3"], "REGION": ["us-east-1"]})
    jobs = _expander(api, time_range, granularity).expand(
        ["REGION", "SERVICE"], ["UNBLENDED_COST", "AMORTIZED_COST"],
    )
    assert [j.key for j in jobs] == [
        ("REGION", "us-east-1", "UNBLENDED_COST"),
        ("REGION", "us-east-1", "AMORTIZED_COST"),
        ("SERVICE", "EC2", "UNBLENDED_COST"),
        ("SERVICE", "EC2", "AMORTIZED_COST"),
        ("SERVICE", "S3", "UNBLENDED_COST"),
        ("SERVICE", "S3", "AMORTIZED_COST"),
    ]
    assert all(j.time_range == time_range and j.granularity == granularity for j in jobs)


def test_expand_is_deterministic(time_range, granularity):
    api = FakeForecastAPI(values={"SERVICE": ["EC2", "S3"], "AZ": ["a", "b", "c"]})
    expander = _expander(api, time_range, granularity)
    first = expander.expand(["SERVICE", "AZ"], ["UNBLENDED_COST"])
    second = expander.expand(["SERVICE", "AZ"], ["UNBLENDED_COST"])
    assert first == second


def test_empty_and_failed_dimensions_are_skipped(time_range, granularity, log_messages):
    api = FakeForecastAPI(values={"SERVICE": ["EC2"]}, lookup_errors={"REGION"})
    expander = _expander(api, time_range, granularity)
    jobs = expander.expand(["SERVICE", "TENANCY", "REGION"], ["UNBLENDED_COST"])

    assert [j.key for j in jobs] == [("SERVICE", "EC2", "UNBLENDED_COST")]
    assert expander.skipped_dimensions["TENANCY"] == "no values"
    assert expander.skipped_dimensions["REGION"].startswith("lookup failed")
    assert any("No values found for dimension: TENANCY" in m for m in log_messages)


def test_all_dimensions_empty_gives_no_jobs(time_range, granularity):
    api = FakeForecastAPI(values={})
    assert _expander(api, time_range, granularity).expand(["SERVICE"], ["UNBLENDED_COST"]) == []


def test_duplicates_are_scheduled_once(time_range, granularity):
    api = FakeForecastAPI(values={"SERVICE": ["EC2", "EC2", "S3"]})
    jobs = _expander(api, time_range, granularity).expand(
        ["SERVICE", "SERVICE"], ["UNBLENDED_COST", "UNBLENDED_COST"],
    )
    assert [j.key for j in jobs] == [
        ("SERVICE", "EC2", "UNBLENDED_COST"),
        ("SERVICE", "S3", "UNBLENDED_COST"),
    ]
    # second SERVICE was served from the cache
    assert api.enumerate_calls == ["SERVICE"]
