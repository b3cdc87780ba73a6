"""YAML config loading with dataclass defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from loguru import logger


@dataclass
class AwsConfig:
    region: str = "us-east-1"
    profile: Optional[str] = None


@dataclass
class CollectionConfig:
    max_parallel: int = 10
    max_retries: int = 3
    base_delay_sec: float = 2.0
    rate_limit_sec: float = 0.5
    cache_ttl_minutes: int = 60
    lookback_days: int = 30
    prediction_interval_level: int = 95


@dataclass
class SelectionConfig:
    dimensions: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
    granularity: str = "MONTHLY"
    days: int = 30


@dataclass
class OutputConfig:
    dir: str = "output"
    bucket: Optional[str] = None
    prefix: str = "forecasts"
    manifest: bool = True


@dataclass
class ForecastConfig:
    aws: AwsConfig = field(default_factory=AwsConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_SECTIONS = {
    "aws": ("region", "profile"),
    "collection": (
        "max_parallel", "max_retries", "base_delay_sec", "rate_limit_sec",
        "cache_ttl_minutes", "lookback_days", "prediction_interval_level",
    ),
    "selection": ("dimensions", "metrics", "granularity", "days"),
    "output": ("dir", "bucket", "prefix", "manifest"),
}


def load_config(path: Optional[str] = None) -> ForecastConfig:
    """Load config from YAML, falling back to defaults for missing keys."""
    if path is None:
        # Try default location
        default = Path("config.yaml")
        if not default.exists():
            logger.debug("No config file found; using built-in defaults")
            return ForecastConfig()
        path = str(default)

    logger.info(f"Using config: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    cfg = ForecastConfig()
    for section, keys in _SECTIONS.items():
        values = raw.get(section) or {}
        target = getattr(cfg, section)
        for key in keys:
            if values.get(key) is not None:
                setattr(target, key, values[key])

    for section in raw:
        if section not in _SECTIONS:
            logger.warning(f"Ignoring unknown config section: {section}")

    return cfg
