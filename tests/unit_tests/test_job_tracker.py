import csv
import json
import os

from cost_forecast.tracking import JobResult, JobTracker


def _result(value, status, **kw):
    return JobResult(
        job_id=f"SERVICE={value}|UNBLENDED_COST", dimension="SERVICE", value=value,
        metric="UNBLENDED_COST", status=status, **kw,
    )


def test_save_reports_writes_all_files(tmp_path):
    tracker = JobTracker(str(tmp_path))
    tracker.add_result(_result("EC2", "success", attempts=1, rows=3))
    tracker.add_result(_result("S3", "failed", attempts=4, retry_delays=[2.0, 4.0, 6.0],
                               error_message="GetCostForecast failed (ThrottlingException)"))
    tracker.save_reports()

    names = sorted(os.listdir(tmp_path))
    prefixes = sorted(n.rsplit("_", 2)[0] for n in names)
    assert prefixes == ["failed_jobs", "job_report", "job_report", "job_summary"]

    failed_file = next(n for n in names if n.startswith("failed_jobs"))
    with open(tmp_path / failed_file) as f:
        failed = json.load(f)
    assert [r["value"] for r in failed] == ["S3"]
    assert failed[0]["retry_delays"] == [2.0, 4.0, 6.0]

    summary_file = next(n for n in names if n.startswith("job_summary"))
    with open(tmp_path / summary_file, newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["status"] for r in rows] == ["success", "failed"]


def test_no_failed_report_when_everything_succeeded(tmp_path):
    tracker = JobTracker(str(tmp_path))
    tracker.add_result(_result("EC2", "success", attempts=1, rows=1))
    tracker.save_reports()
    assert not any(n.startswith("failed_jobs") for n in os.listdir(tmp_path))
    assert tracker.failed() == []


def test_cancelled_jobs_count_as_not_ok(tmp_path):
    tracker = JobTracker(str(tmp_path))
    tracker.add_result(_result("EC2", "cancelled"))
    assert [r.value for r in tracker.failed()] == ["EC2"]
