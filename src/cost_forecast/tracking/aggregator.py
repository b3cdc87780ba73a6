"""Single-writer CSV aggregation of forecast rows from concurrent jobs."""

from __future__ import annotations

import csv
import os
import threading
from typing import Iterable, List

from loguru import logger

from cost_forecast.errors import AggregationError
from cost_forecast.models import ForecastRow

CSV_HEADER = [
    "Dimension", "Value", "Metric", "StartDate", "EndDate",
    "MeanValue", "LowerBound", "UpperBound",
]


class ResultAggregator:
    """Stream each job's rows into one CSV file as a single unit.

    Rows reach disk as soon as a job finishes, so an interrupted run keeps
    everything collected so far.  Row order across jobs is whatever order
    the jobs finish in; order within one job is preserved.
    """

    def __init__(self, path: str):
        self.path = path
        os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._rows_written = 0
        self._finalized = False
        self._fh = open(path, "w", newline="")
        self._writer = csv.writer(self._fh)
        self._writer.writerow(CSV_HEADER)
        self._fh.flush()

    @property
    def row_count(self) -> int:
        with self._lock:
            return self._rows_written

    @property
    def finalized(self) -> bool:
        return self._finalized

    def append(self, rows: Iterable[ForecastRow]) -> int:
        """Write one job's *rows*; returns how many were written."""
        batch: List[List[str]] = [r.as_csv_row() for r in rows]
        with self._lock:
            if self._finalized:
                raise AggregationError(f"Cannot append to finalized artifact {self.path}")
            if batch:
                self._writer.writerows(batch)
                self._fh.flush()
                self._rows_written += len(batch)
        return len(batch)

    def finalize(self) -> int:
        """Close the artifact and return the total row count.

        Raises:
            AggregationError: already finalized, or no rows were collected.
        """
        with self._lock:
            if self._finalized:
                raise AggregationError(f"Artifact {self.path} already finalized")
            self._finalized = True
            self._fh.close()
            count = self._rows_written

        if count == 0:
            raise AggregationError("No forecast data was collected")
        logger.info(f"Total records collected: {count}")
        return count

    def close(self) -> None:
        """Release the file handle without the empty-artifact check."""
        with self._lock:
            if not self._finalized:
                self._finalized = True
                self._fh.close()

    def __enter__(self) -> "ResultAggregator":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
