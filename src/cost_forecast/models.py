"""Dataclasses for jobs, time ranges and forecast rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from cost_forecast.catalog import Granularity


@dataclass(frozen=True)
class TimeRange:
    """Half-open date interval ``[start, end)`` as Cost Explorer expects it."""

    start: date
    end: date

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"End date {self.end} must be after start date {self.start}")

    @classmethod
    def next_days(cls, days: int, today: Optional[date] = None) -> "TimeRange":
        today = today or date.today()
        return cls(today, today + timedelta(days=days))

    @classmethod
    def last_days(cls, days: int, today: Optional[date] = None) -> "TimeRange":
        today = today or date.today()
        return cls(today - timedelta(days=days), today)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def to_api(self) -> Dict[str, str]:
        return {"Start": self.start.isoformat(), "End": self.end.isoformat()}

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"


@dataclass(frozen=True)
class Job:
    """One forecast request: a dimension value for one metric."""

    dimension: str
    value: str
    metric: str
    time_range: TimeRange
    granularity: Granularity

    @property
    def key(self) -> Tuple[str, str, str]:
        """Identity of the job within a run."""
        return (self.dimension, self.value, self.metric)

    @property
    def job_id(self) -> str:
        return f"{self.dimension}={self.value}|{self.metric}"


@dataclass(frozen=True)
class ForecastPeriod:
    """One forecasted sub-period as returned by the remote API."""

    start: str
    end: str
    mean: str
    lower_bound: str = ""
    upper_bound: str = ""


@dataclass(frozen=True)
class ForecastRow:
    """One output record of the collected dataset."""

    dimension: str
    value: str
    metric: str
    period_start: str
    period_end: str
    mean_value: str
    lower_bound: str
    upper_bound: str

    @classmethod
    def from_period(cls, job: Job, period: ForecastPeriod) -> "ForecastRow":
        return cls(
            dimension=job.dimension,
            value=job.value,
            metric=job.metric,
            period_start=period.start,
            period_end=period.end,
            mean_value=period.mean,
            lower_bound=period.lower_bound,
            upper_bound=period.upper_bound,
        )

    def as_csv_row(self) -> List[str]:
        return [
            self.dimension, self.value, self.metric,
            self.period_start, self.period_end,
            self.mean_value, self.lower_bound, self.upper_bound,
        ]


@dataclass
class CollectionRequest:
    """What to collect: the output of option selection."""

    time_range: TimeRange
    granularity: Granularity
    dimensions: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
