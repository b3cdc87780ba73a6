"""Structured exit codes for CLI commands."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cost_forecast.steps.collect import CollectionResult


class ExitCode(IntEnum):
    SUCCESS = 0
    PARTIAL_FAILURE = 1  # Completed with some failed jobs
    TOTAL_FAILURE = 2  # No data collected at all
    BAD_INPUT = 3
    MISSING_DEPENDENCY = 4  # Credentials / Cost Explorer access missing
    USER_ABORT = 5
    NO_WORK = 6  # Every selected dimension resolved to zero values


def exit_code_from_result(result: CollectionResult) -> ExitCode:
    """Derive an exit code from a finished :class:`CollectionResult`."""
    if result.cancelled:
        return ExitCode.USER_ABORT
    if result.total_jobs and result.failed_jobs == result.total_jobs:
        return ExitCode.TOTAL_FAILURE
    if result.failed_jobs > 0:
        return ExitCode.PARTIAL_FAILURE
    return ExitCode.SUCCESS
