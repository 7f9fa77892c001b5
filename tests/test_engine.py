import json
import math

import pytest

from benchtrail.comparison import Direction, compare_runs
from benchtrail.errors import NoRunsRecorded, OutOfRange, RunOutOfRange
from benchtrail.models import BenchmarkHistory


def test_improvement_scenario(make_history, header):
    report = compare_runs(make_history([100.0], [80.0]), 0, 1, header)

    (row,) = report.rows
    assert row.absolute_diff == pytest.approx(-20.0)
    assert row.percent_diff == pytest.approx(-25.0)
    assert row.speedup_ratio == pytest.approx(1.25)
    assert row.direction is Direction.IMPROVED
    assert report.skipped == 0


def test_regression_and_unchanged_directions(make_history, header):
    report = compare_runs(make_history([10.0, 7.0], [12.0, 7.0]), 0, 1, header)
    assert [row.direction for row in report.rows] == [Direction.REGRESSED, Direction.UNCHANGED]
    assert report.rows[1].percent_diff == 0.0
    assert report.rows[1].speedup_ratio == 1.0


def test_comparison_is_symmetric(make_history, header):
    history = make_history([100.0, 3.0, 42.0], [80.0, 4.5, 42.0])
    forward = compare_runs(history, 0, 1, header)
    backward = compare_runs(history, 1, 0, header)

    for a, b in zip(forward.rows, backward.rows):
        assert a.speedup_ratio == pytest.approx(1 / b.speedup_ratio)
        assert a.absolute_diff == pytest.approx(-b.absolute_diff)


def test_pairs_by_position_not_by_name(make_history, header):
    history = make_history([1.0, 2.0], [3.0, 4.0])
    report = compare_runs(history, 0, 1, header)
    assert [row.name for row in report.rows] == ["BM_case/0", "BM_case/1"]
    assert [(row.time1, row.time2) for row in report.rows] == [(1.0, 3.0), (2.0, 4.0)]


def test_different_lengths_compare_common_prefix_and_report_skipped(make_history, header):
    history = make_history([1.0, 2.0, 3.0, 4.0], [1.0, 2.0])
    report = compare_runs(history, 0, 1, header)
    assert len(report.rows) == 2
    assert report.skipped == 2
    assert report.truncated


def test_zero_time_in_second_run_is_not_finite(make_history, header):
    report = compare_runs(make_history([5.0, 0.0], [0.0, 0.0]), 0, 1, header)
    first, second = report.rows

    assert first.percent_diff == -math.inf
    assert first.speedup_ratio == math.inf
    assert math.isnan(second.percent_diff)
    assert math.isnan(second.speedup_ratio)
    assert not first.is_finite


def test_empty_history_reports_no_runs(header):
    with pytest.raises(NoRunsRecorded):
        compare_runs(BenchmarkHistory(name="demo"), 0, 0, header)


@pytest.mark.parametrize("run1, run2", [(0, 2), (5, 0), (-1, 0)])
def test_stale_indices_are_rejected(make_history, header, run1, run2):
    with pytest.raises(RunOutOfRange) as excinfo:
        compare_runs(make_history([1.0], [2.0]), run1, run2, header)
    assert isinstance(excinfo.value, OutOfRange)
    assert excinfo.value.length == 2


def test_source_diff_uses_header_root_and_run_hashes(make_history, header):
    calls = []

    def fake_diff(root, hash1, hash2):
        calls.append((root, hash1, hash2))
        return "diff --git a/x b/x\n"

    history = make_history([1.0], [2.0], [3.0])
    report = compare_runs(history, 2, 0, header, source_diff=fake_diff)

    assert calls == [(header.source_root, history.runs[2].source_hash, history.runs[0].source_hash)]
    assert report.source_diff.startswith("diff --git")


def test_empty_source_diff_is_not_an_error(make_history, header):
    report = compare_runs(make_history([1.0], [2.0]), 0, 1, header, source_diff=lambda *a: "")
    assert report.source_diff == ""


def test_report_serialisation(make_history, header, tmp_path):
    report = compare_runs(make_history([100.0, 1.0], [80.0, 0.0]), 0, 1, header)

    path = tmp_path / "out" / "report.json"
    report.write_json(path)
    data = json.loads(path.read_text())
    assert data["benchmark"] == "demo"
    assert data["rows"][0]["direction"] == "improved"
    assert data["rows"][1]["percent_diff"] == "-inf"

    markdown = report.to_markdown()
    assert "| BM_case/0 | 100 | 80 | -20 | -25.00% | 1.250x | improved |" in markdown
    assert markdown.startswith("# demo: run 0 vs run 1")
