"""Centralized logging configuration with run context."""

from __future__ import annotations

import sys
import uuid
from typing import Optional

from loguru import logger

_TEXT_FORMAT = "<level>{level: <8}</level> | {extra[run_id]:>8} | {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} [{level}] {extra[run_id]} | {message}"

_file_sink_id: Optional[int] = None


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure loguru with the given level and format.

    Call once at CLI startup.  Library code that runs without this gets
    loguru's default stderr sink.
    """
    global _file_sink_id
    logger.remove()
    _file_sink_id = None
    if fmt == "json":
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=_TEXT_FORMAT)


def add_log_file(path: str, level: str = "DEBUG") -> None:
    """Mirror all records into *path* for the current run.

    ``enqueue=True`` keeps writes from worker threads ordered.
    """
    global _file_sink_id
    if _file_sink_id is not None:
        logger.remove(_file_sink_id)
    _file_sink_id = logger.add(path, level=level.upper(), format=_FILE_FORMAT, enqueue=True)


def close_log_file() -> None:
    """Flush and detach the run's log file sink, if any."""
    global _file_sink_id
    if _file_sink_id is not None:
        logger.remove(_file_sink_id)
        _file_sink_id = None


def new_run_id() -> str:
    """Generate an 8-char hex run identifier."""
    return uuid.uuid4().hex[:8]


def bind_run_context(run_id: str) -> None:
    """Set *run_id* as a default extra value for all subsequent log calls."""
    logger.configure(extra={"run_id": run_id})
