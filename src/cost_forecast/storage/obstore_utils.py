"""obstore helpers for publishing run artifacts."""

from __future__ import annotations

import os

import obstore as obs
from loguru import logger
from obstore.store import LocalStore, from_url

from cost_forecast.errors import UploadError


def from_dest(dest: str, *, region: str = "us-east-1"):
    """Build an obstore Store from an ``s3://`` URI or local path."""
    if dest.startswith("s3://"):
        return from_url(dest, region=region)
    os.makedirs(dest, exist_ok=True)
    return LocalStore(prefix=dest)


def join_uri(dest: str, relpath: str) -> str:
    if dest.startswith("s3://"):
        return f"{dest.rstrip('/')}/{relpath}"
    return os.path.join(dest, relpath)


def obstore_put_bytes(store, relpath: str, data: bytes) -> None:
    """Write raw bytes to *store* at *relpath*."""
    obs.put(store, relpath, data)


def upload_artifact(local_path: str, dest: str, relpath: str | None = None,
                    *, region: str = "us-east-1") -> str:
    """Copy *local_path* to *dest* and return the resulting URI.

    Raises:
        UploadError: the file could not be read or written.
    """
    relpath = relpath or os.path.basename(local_path)
    uri = join_uri(dest, relpath)
    try:
        store = from_dest(dest, region=region)
        with open(local_path, "rb") as f:
            obstore_put_bytes(store, relpath, f.read())
    except Exception as e:
        raise UploadError(f"Failed to upload {local_path} to {uri}: {e}") from e
    logger.info(f"File uploaded to {uri}")
    return uri
