"""Object storage upload and QuickSight manifest helpers."""

from cost_forecast.storage.manifest import build_manifest, publish_manifest
from cost_forecast.storage.obstore_utils import from_dest, join_uri, upload_artifact

__all__ = ["build_manifest", "from_dest", "join_uri", "publish_manifest", "upload_artifact"]
