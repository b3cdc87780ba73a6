"""Cost Explorer metrics, dimensions and option selection helpers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from loguru import logger

from cost_forecast.errors import ConfigurationError


class Granularity(str, Enum):
    DAILY = "DAILY"
    MONTHLY = "MONTHLY"


METRICS = (
    "AMORTIZED_COST",
    "BLENDED_COST",
    "NET_AMORTIZED_COST",
    "NET_UNBLENDED_COST",
    "UNBLENDED_COST",
    "USAGE_QUANTITY",
    "NORMALIZED_USAGE_AMOUNT",
)

DIMENSIONS = (
    "AZ",
    "INSTANCE_TYPE",
    "LINKED_ACCOUNT",
    "LINKED_ACCOUNT_NAME",
    "OPERATION",
    "PURCHASE_TYPE",
    "REGION",
    "SERVICE",
    "USAGE_TYPE",
    "USAGE_TYPE_GROUP",
    "RECORD_TYPE",
    "OPERATING_SYSTEM",
    "TENANCY",
    "SCOPE",
    "PLATFORM",
    "SUBSCRIPTION_ID",
    "LEGAL_ENTITY_NAME",
    "DEPLOYMENT_OPTION",
    "DATABASE_ENGINE",
    "INSTANCE_TYPE_FAMILY",
    "BILLING_ENTITY",
    "RESERVATION_ID",
    "SAVINGS_PLAN_ARN",
)

RECOMMENDED_DIMENSIONS = ("SERVICE", "REGION", "LINKED_ACCOUNT")

METRIC_DESCRIPTIONS = {
    "AMORTIZED_COST": "Amortized cost including RIs/SPs",
    "BLENDED_COST": "Blended cost across accounts",
    "UNBLENDED_COST": "Actual cost without blending",
    "USAGE_QUANTITY": "Usage quantity metrics",
}

DIMENSION_DESCRIPTIONS = {
    "SERVICE": "AWS Service breakdown",
    "REGION": "AWS Region breakdown",
    "LINKED_ACCOUNT": "Account breakdown",
    "INSTANCE_TYPE": "EC2 instance types",
}


def _select(choices: Iterable[str], available: tuple, kind: str,
            aliases: dict) -> List[str]:
    selected: List[str] = []
    for raw in choices:
        for item in str(raw).split(","):
            name = item.strip().upper()
            if not name:
                continue
            if name in aliases:
                expanded = aliases[name]
            elif name in available:
                expanded = (name,)
            else:
                logger.warning(f"Invalid {kind} selection: {item.strip()}")
                continue
            for n in expanded:
                if n not in selected:
                    selected.append(n)
    return selected


def select_metrics(choices: Iterable[str]) -> List[str]:
    """Resolve user metric choices (names, comma lists, or ``all``)."""
    return _select(choices, METRICS, "metric", {"ALL": METRICS})


def select_dimensions(choices: Iterable[str]) -> List[str]:
    """Resolve user dimension choices (names, ``all`` or ``recommended``)."""
    return _select(
        choices, DIMENSIONS, "dimension",
        {"ALL": DIMENSIONS, "RECOMMENDED": RECOMMENDED_DIMENSIONS},
    )


def parse_granularity(value: str) -> Granularity:
    try:
        return Granularity(str(value).upper())
    except ValueError:
        raise ConfigurationError(
            f"Invalid granularity {value!r}; expected DAILY or MONTHLY"
        ) from None
