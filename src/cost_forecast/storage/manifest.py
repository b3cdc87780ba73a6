"""QuickSight S3 manifest for the collected CSV."""

from __future__ import annotations

import json
import os
from typing import Any, Dict

from cost_forecast.storage.obstore_utils import upload_artifact

MANIFEST_NAME = "quicksight-manifest.json"


def build_manifest(csv_uri: str) -> Dict[str, Any]:
    return {
        "fileLocations": [{"URIs": [csv_uri]}],
        "globalUploadSettings": {
            "format": "CSV",
            "delimiter": ",",
            "textqualifier": '"',
            "containsHeader": "true",
        },
    }


def publish_manifest(csv_uri: str, output_dir: str, dest: str,
                     *, region: str = "us-east-1") -> str:
    """Write the manifest next to the local CSV and upload it to *dest*."""
    path = os.path.join(output_dir, MANIFEST_NAME)
    with open(path, "w") as f:
        json.dump(build_manifest(csv_uri), f, indent=4)
    return upload_artifact(path, dest, MANIFEST_NAME, region=region)
