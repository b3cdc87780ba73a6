"""Thin boto3 wrapper around the Cost Explorer calls the collector needs.

Every botocore failure is re-raised as :class:`RemoteAPIError` so the
retry and lookup layers only have to know one exception type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cost_forecast.catalog import Granularity
from cost_forecast.errors import RemoteAPIError
from cost_forecast.models import ForecastPeriod, TimeRange


class ForecastAPI(Protocol):
    """What the collector consumes from the remote forecast service."""

    def forecast(self, dimension: str, value: str, metric: str,
                 time_range: TimeRange, granularity: Granularity) -> List[ForecastPeriod]:
        ...

    def enumerate_values(self, dimension: str, lookback: TimeRange) -> List[str]:
        ...


def _wrap(operation: str, exc: Exception) -> RemoteAPIError:
    if isinstance(exc, ClientError):
        err = exc.response.get("Error", {})
        code = err.get("Code")
        return RemoteAPIError(f"{operation} failed ({code}): {err.get('Message', exc)}",
                              code=code, original_exception=exc)
    return RemoteAPIError(f"{operation} failed: {exc}", original_exception=exc)


class CostExplorerClient:
    """:class:`ForecastAPI` implementation backed by ``boto3``'s ``ce`` client."""

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        prediction_interval_level: int = 95,
        *,
        session: Optional[boto3.Session] = None,
    ):
        try:
            self.session = session or boto3.Session(profile_name=profile, region_name=region)
            # Throttling is handled by our own retry loop; keep botocore's short.
            self.client = self.session.client(
                "ce", config=Config(retries={"max_attempts": 2, "mode": "standard"}),
            )
        except BotoCoreError as e:
            raise _wrap("CreateClient", e) from e
        self.prediction_interval_level = prediction_interval_level

    def forecast(self, dimension: str, value: str, metric: str,
                 time_range: TimeRange, granularity: Granularity) -> List[ForecastPeriod]:
        try:
            resp = self.client.get_cost_forecast(
                TimePeriod=time_range.to_api(),
                Metric=metric,
                Granularity=Granularity(granularity).value,
                Filter={"Dimensions": {"Key": dimension, "Values": [value]}},
                PredictionIntervalLevel=self.prediction_interval_level,
            )
        except (ClientError, BotoCoreError) as e:
            raise _wrap("GetCostForecast", e) from e

        return [_parse_period(item) for item in resp.get("ForecastResultsByTime", [])]

    def enumerate_values(self, dimension: str, lookback: TimeRange) -> List[str]:
        values: List[str] = []
        kwargs: Dict[str, Any] = {"TimePeriod": lookback.to_api(), "Dimension": dimension}
        while True:
            try:
                resp = self.client.get_dimension_values(**kwargs)
            except (ClientError, BotoCoreError) as e:
                raise _wrap("GetDimensionValues", e) from e
            values.extend(dv["Value"] for dv in resp.get("DimensionValues", []))
            token = resp.get("NextPageToken")
            if not token:
                return values
            kwargs["NextPageToken"] = token

    def caller_identity(self) -> Dict[str, str]:
        """Return account and ARN of the credentials in use (STS)."""
        try:
            resp = self.session.client("sts").get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise _wrap("GetCallerIdentity", e) from e
        return {"account_id": resp.get("Account"), "arn": resp.get("Arn")}

    def probe_access(self, lookback: TimeRange) -> None:
        """Make one minimal Cost Explorer read; raises on missing permissions."""
        try:
            self.client.get_cost_and_usage(
                TimePeriod=lookback.to_api(),
                Granularity=Granularity.DAILY.value,
                Metrics=["BlendedCost"],
            )
        except (ClientError, BotoCoreError) as e:
            raise _wrap("GetCostAndUsage", e) from e


def _parse_period(item: Dict[str, Any]) -> ForecastPeriod:
    period = item.get("TimePeriod", {})
    return ForecastPeriod(
        start=period.get("Start", ""),
        end=period.get("End", ""),
        mean=item.get("MeanValue", ""),
        lower_bound=item.get("PredictionIntervalLowerBound", ""),
        upper_bound=item.get("PredictionIntervalUpperBound", ""),
    )
