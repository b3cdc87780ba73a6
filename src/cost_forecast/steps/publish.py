"""Publish step: upload the CSV, the run log and the QuickSight manifest."""

from __future__ import annotations

import os
from typing import Dict, Optional

from loguru import logger

from cost_forecast.config import ForecastConfig
from cost_forecast.storage import publish_manifest, upload_artifact


def s3_dest(bucket: str, prefix: str) -> str:
    bucket = bucket[len("s3://"):] if bucket.startswith("s3://") else bucket
    prefix = prefix.strip("/")
    return f"s3://{bucket}/{prefix}" if prefix else f"s3://{bucket}"


def publish_results(
    csv_path: str,
    cfg: ForecastConfig,
    *,
    dest: str,
    log_path: Optional[str] = None,
) -> Dict[str, str]:
    """Upload run artifacts to *dest*; returns ``{artifact: uri}``.

    Raises:
        UploadError: the CSV (or manifest) upload failed.  Already-collected
            data on local disk is unaffected.
    """
    uris: Dict[str, str] = {}
    region = cfg.aws.region
    uris["csv"] = upload_artifact(csv_path, dest, region=region)

    if log_path and os.path.exists(log_path):
        logger.complete()
        uris["log"] = upload_artifact(
            log_path, dest, f"logs/{os.path.basename(log_path)}", region=region,
        )

    if cfg.output.manifest:
        uris["manifest"] = publish_manifest(
            uris["csv"], os.path.dirname(csv_path), dest, region=region,
        )
        logger.info(f"QuickSight manifest uploaded to {uris['manifest']}")
    return uris
