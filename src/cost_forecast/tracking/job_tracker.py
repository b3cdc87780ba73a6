"""JobTracker with JSON, CSV and text report generation."""

from __future__ import annotations

import csv
import json
import os
import threading
from datetime import datetime
from typing import Dict, List

from loguru import logger

from cost_forecast.tracking.job_result import JobResult


class JobTracker:
    """Centralized job tracking and reporting.

    ``add_result`` is called from scheduler threads, so it is locked.
    """

    def __init__(self, output_dir: str = "job_reports"):
        self.output_dir = output_dir
        self.results: List[JobResult] = []
        self.start_time = datetime.now()
        self._lock = threading.Lock()
        os.makedirs(output_dir, exist_ok=True)

    def add_result(self, result: JobResult) -> None:
        with self._lock:
            self.results.append(result)

    def failed(self) -> List[JobResult]:
        with self._lock:
            return [r for r in self.results if not r.ok]

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------

    def save_reports(self) -> None:
        """Save JSON, CSV, text, and failed-jobs reports."""
        timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")
        with self._lock:
            results = list(self.results)

        # 1. Detailed JSON
        json_path = os.path.join(self.output_dir, f"job_report_{timestamp}.json")
        with open(json_path, "w") as f:
            json.dump([r.to_dict() for r in results], f, indent=2, default=str)

        # 2. CSV summary
        csv_path = os.path.join(self.output_dir, f"job_summary_{timestamp}.csv")
        self._save_csv_summary(csv_path, results)

        # 3. Human-readable text
        txt_path = os.path.join(self.output_dir, f"job_report_{timestamp}.txt")
        self._save_text_report(txt_path, results)

        # 4. Failed jobs only
        failed = [r for r in results if not r.ok]
        if failed:
            failed_path = os.path.join(self.output_dir, f"failed_jobs_{timestamp}.json")
            with open(failed_path, "w") as f:
                json.dump([r.to_dict() for r in failed], f, indent=2, default=str)

        logger.info(f"Reports saved to {self.output_dir}/")

    @staticmethod
    def _save_csv_summary(path: str, results: List[JobResult]) -> None:
        fieldnames = [
            "job_id", "dimension", "value", "metric", "status",
            "attempts", "rows", "duration_sec", "error_message",
        ]
        with open(path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for r in results:
                writer.writerow({
                    "job_id": r.job_id,
                    "dimension": r.dimension,
                    "value": r.value,
                    "metric": r.metric,
                    "status": r.status,
                    "attempts": r.attempts,
                    "rows": r.rows,
                    "duration_sec": r.duration_sec,
                    "error_message": r.error_message[:100] if r.error_message else None,
                })

    @staticmethod
    def _save_text_report(path: str, results: List[JobResult]) -> None:
        total = len(results)
        if total == 0:
            with open(path, "w") as f:
                f.write("No jobs were executed.\n")
            return

        counts: Dict[str, int] = {}
        for r in results:
            counts[r.status] = counts.get(r.status, 0) + 1

        by_dimension: Dict[str, Dict[str, int]] = {}
        for r in results:
            bucket = by_dimension.setdefault(r.dimension, {"success": 0, "failed": 0})
            bucket["success" if r.ok else "failed"] += 1

        durations = [r.duration_sec for r in results if r.duration_sec]
        avg_dur = sum(durations) / len(durations) if durations else 0
        retried = sum(1 for r in results if r.attempts > 1)

        with open(path, "w") as f:
            f.write("=" * 60 + "\n")
            f.write("COST FORECAST COLLECTION REPORT\n")
            f.write(f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}\n")
            f.write("=" * 60 + "\n\n")

            f.write("OVERALL SUMMARY\n")
            f.write("-" * 40 + "\n")
            f.write(f"Total Jobs:        {total}\n")
            for status in ("success", "failed", "error", "cancelled"):
                n = counts.get(status, 0)
                f.write(f"{status.capitalize() + ':':<19}{n} ({n / total * 100:.1f}%)\n")
            f.write(f"Retried Jobs:      {retried}\n")
            f.write(f"Rows Collected:    {sum(r.rows for r in results)}\n")
            f.write(f"\nAvg Duration:   {avg_dur:.2f} sec\n\n")

            f.write("BREAKDOWN BY DIMENSION\n")
            f.write("-" * 40 + "\n")
            for dimension, c in sorted(by_dimension.items()):
                f.write(f"  {dimension:24s} {c['success']} ok / {c['failed']} failed\n")

            failed_jobs = [r for r in results if not r.ok]
            if failed_jobs:
                f.write("\nFAILED JOBS DETAIL\n")
                f.write("-" * 40 + "\n")
                for r in failed_jobs[:20]:
                    f.write(f"\n{r.dimension}={r.value}, metric={r.metric}\n")
                    f.write(f"  Status: {r.status} | Attempts: {r.attempts}\n")
                    f.write(f"  Error: {r.error_message[:200] if r.error_message else 'Unknown'}\n")
                if len(failed_jobs) > 20:
                    f.write(f"\n... and {len(failed_jobs) - 20} more failed jobs\n")

    def print_summary(self) -> None:
        """Log a quick summary."""
        with self._lock:
            results = list(self.results)
        total = len(results)
        if total == 0:
            logger.info("No jobs were executed.")
            return

        succeeded = sum(1 for r in results if r.ok)
        cancelled = sum(1 for r in results if r.status == "cancelled")
        failed = total - succeeded - cancelled
        logger.info(
            f"Job summary: {succeeded} succeeded, {failed} failed, {cancelled} cancelled "
            f"out of {total} total"
        )
