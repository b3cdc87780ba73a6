import csv
import threading

import pytest

from cost_forecast.errors import AggregationError
from cost_forecast.models import ForecastRow
from cost_forecast.tracking import CSV_HEADER, ResultAggregator


def _rows(tag, n):
    return [
        ForecastRow(
            dimension="SERVICE", value=tag, metric="UNBLENDED_COST",
            period_start=f"2026-11-{i + 1:02d}", period_end=f"2026-11-{i + 2:02d}",
            mean_value=str(i), lower_bound="0", upper_bound="1",
        )
        for i in range(n)
    ]


def _read(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


def test_concurrent_appenders_lose_nothing(tmp_path):
    path = tmp_path / "out.csv"
    agg = ResultAggregator(str(path))
    appenders, per_call, calls = 8, 5, 40

    def append(idx):
        for c in range(calls):
            agg.append(_rows(f"job-{idx}-{c}", per_call))

    threads = [threading.Thread(target=append, args=(i,)) for i in range(appenders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert agg.finalize() == appenders * per_call * calls
    lines = _read(path)
    assert lines[0] == CSV_HEADER
    assert len(lines) - 1 == appenders * per_call * calls

    # each job's rows are contiguous and in order
    body = lines[1:]
    for start in range(0, len(body), per_call):
        block = body[start:start + per_call]
        assert len({r[1] for r in block}) == 1
        assert [r[5] for r in block] == [str(i) for i in range(per_call)]


def test_fields_with_commas_and_quotes_are_quoted(tmp_path):
    path = tmp_path / "out.csv"
    agg = ResultAggregator(str(path))
    row = ForecastRow("LINKED_ACCOUNT_NAME", 'Acme, "Prod"', "UNBLENDED_COST",
                      "2026-11-01", "2026-12-01", "1.5", "1.0", "2.0")
    agg.append([row])
    agg.finalize()

    raw = path.read_text()
    assert '"Acme, ""Prod"""' in raw
    assert _read(path)[1][1] == 'Acme, "Prod"'


def test_append_after_finalize_is_an_error(tmp_path):
    agg = ResultAggregator(str(tmp_path / "out.csv"))
    agg.append(_rows("EC2", 1))
    agg.finalize()
    with pytest.raises(AggregationError):
        agg.append(_rows("S3", 1))
    with pytest.raises(AggregationError):
        agg.finalize()


def test_finalize_without_rows_fails(tmp_path):
    agg = ResultAggregator(str(tmp_path / "out.csv"))
    agg.append([])
    with pytest.raises(AggregationError, match="No forecast data"):
        agg.finalize()


def test_rows_are_on_disk_before_finalize(tmp_path):
    path = tmp_path / "nested" / "out.csv"
    with ResultAggregator(str(path)) as agg:
        agg.append(_rows("EC2", 2))
        assert len(_read(path)) == 3
    assert agg.finalized
