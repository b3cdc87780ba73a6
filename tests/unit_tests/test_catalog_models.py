from datetime import date

import pytest

from cost_forecast.catalog import (
    DIMENSIONS,
    METRICS,
    RECOMMENDED_DIMENSIONS,
    Granularity,
    parse_granularity,
    select_dimensions,
    select_metrics,
)
from cost_forecast.errors import ConfigurationError, JobError
from cost_forecast.models import ForecastPeriod, ForecastRow, Job, TimeRange


def test_select_aliases_and_lists(log_messages):
    assert select_metrics(["all"]) == list(METRICS)
    assert select_dimensions(["recommended"]) == list(RECOMMENDED_DIMENSIONS)
    assert select_dimensions(["ALL"]) == list(DIMENSIONS)
    assert select_dimensions(["service, region", "SERVICE", "bogus"]) == ["SERVICE", "REGION"]
    assert any("Invalid dimension selection: bogus" in m for m in log_messages)


def test_parse_granularity():
    assert parse_granularity("daily") is Granularity.DAILY
    with pytest.raises(ConfigurationError):
        parse_granularity("HOURLY")


def test_time_range():
    tr = TimeRange.next_days(30, today=date(2026, 10, 18))
    assert tr.to_api() == {"Start": "2026-10-18", "End": "2026-11-17"}
    assert tr.days == 30
    assert TimeRange.last_days(7, today=date(2026, 10, 18)).start == date(2026, 10, 11)
    with pytest.raises(ValueError):
        TimeRange(date(2026, 11, 1), date(2026, 11, 1))


def test_row_carries_job_identity(time_range):
    job = Job("SERVICE", "Amazon S3", "UNBLENDED_COST", time_range, Granularity.MONTHLY)
    row = ForecastRow.from_period(job, ForecastPeriod("2026-11-01", "2026-12-01", "3.14"))
    assert row.as_csv_row() == [
        "SERVICE", "Amazon S3", "UNBLENDED_COST", "2026-11-01", "2026-12-01", "3.14", "", "",
    ]
    assert job.job_id == "SERVICE=Amazon S3|UNBLENDED_COST"
    err = JobError(job, "boom")
    assert err.job is job
    assert "SERVICE=Amazon S3" in str(err)
