"""Paired comparison of two recorded runs of a benchmark.

Measurements are paired by position, not by name: callers must make sure the
two runs measured the same cases in the same order. When the runs differ in
length only the common prefix is compared and the number of skipped tail
entries is reported.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from benchtrail.errors import NoRunsRecorded, RunOutOfRange
from benchtrail.models import BenchHeader, BenchmarkHistory

SourceDiff = Callable[[str, str, str], str]


class Direction(str, Enum):
    IMPROVED = "improved"
    REGRESSED = "regressed"
    UNCHANGED = "unchanged"


def _ratio(numerator: float, denominator: float) -> float:
    """Divide, yielding inf/nan instead of raising on a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


@dataclass(frozen=True)
class ComparisonRow:
    """Comparison of one measurement between two runs."""

    name: str
    time1: float
    time2: float
    absolute_diff: float
    percent_diff: float
    speedup_ratio: float
    direction: Direction

    @classmethod
    def from_times(cls, name: str, time1: float, time2: float) -> ComparisonRow:
        if time1 > time2:
            direction = Direction.IMPROVED
        elif time1 < time2:
            direction = Direction.REGRESSED
        else:
            direction = Direction.UNCHANGED
        diff = time2 - time1
        return cls(
            name=name,
            time1=time1,
            time2=time2,
            absolute_diff=diff,
            percent_diff=100.0 * _ratio(diff, time2),
            speedup_ratio=_ratio(time1, time2),
            direction=direction,
        )

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.percent_diff) and math.isfinite(self.speedup_ratio)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "time1": self.time1,
            "time2": self.time2,
            "absolute_diff": self.absolute_diff,
            "percent_diff": _json_float(self.percent_diff),
            "speedup_ratio": _json_float(self.speedup_ratio),
            "direction": self.direction.value,
        }


def _json_float(value: float) -> float | str:
    # JSON has no inf/nan literals
    return value if math.isfinite(value) else str(value)


@dataclass
class ComparisonReport:
    """Result of comparing run ``run1`` against run ``run2``."""

    name: str
    run1: int
    run2: int
    commentary1: str
    commentary2: str
    rows: list[ComparisonRow] = field(default_factory=list)
    skipped: int = 0
    source_diff: str = ""
    time_unit: str = "ns"

    @property
    def truncated(self) -> bool:
        return self.skipped > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "benchmark": self.name,
            "runs": [
                {"run": self.run1, "commentary": self.commentary1},
                {"run": self.run2, "commentary": self.commentary2},
            ],
            "time_unit": self.time_unit,
            "rows": [row.to_dict() for row in self.rows],
            "skipped": self.skipped,
            "source_diff": self.source_diff,
        }

    def to_markdown(self) -> str:
        """Render the comparison as a Markdown table."""
        lines: list[str] = [f"# {self.name}: run {self.run1} vs run {self.run2}\n"]
        lines.append(f"- Run {self.run1}: {self.commentary1}")
        lines.append(f"- Run {self.run2}: {self.commentary2}\n")

        lines.append(
            f"| Name | Run {self.run1} ({self.time_unit}) | Run {self.run2} ({self.time_unit}) "
            "| Diff | % Diff | Speedup | |"
        )
        lines.append("|------|------:|------:|------:|------:|------:|---|")
        for row in self.rows:
            lines.append(
                f"| {row.name} | {row.time1:g} | {row.time2:g} | {row.absolute_diff:+g} "
                f"| {row.percent_diff:+.2f}% | {row.speedup_ratio:.3f}x | {row.direction.value} |"
            )

        if self.truncated:
            lines.append(
                f"\n{self.skipped} measurement(s) skipped: the runs have different lengths."
            )
        if self.source_diff:
            lines.append("\n## Source difference(s)\n")
            lines.append("```diff")
            lines.append(self.source_diff.rstrip("\n"))
            lines.append("```")
        return "\n".join(lines)

    def write_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    def write_markdown(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(self.to_markdown())


def compare_runs(
    history: BenchmarkHistory,
    run1: int,
    run2: int,
    header: BenchHeader,
    source_diff: SourceDiff | None = None,
) -> ComparisonReport:
    """Compare two runs of ``history`` measurement by measurement.

    Args:
        history: Loaded history of the benchmark
        run1: Index of the baseline run
        run2: Index of the run compared against the baseline
        header: Catalog header of the benchmark, for the source root
        source_diff: ``(root, hash1, hash2) -> diff text`` collaborator;
            an empty result means no diff is available

    Raises:
        NoRunsRecorded: If the history is empty
        RunOutOfRange: If either index is not a recorded run
    """
    if not history.commentary:
        raise NoRunsRecorded(history.name)
    for index in (run1, run2):
        if not 0 <= index < len(history):
            raise RunOutOfRange(index, len(history))

    first = history.runs[run1]
    second = history.runs[run2]
    paired = min(len(first.measurements), len(second.measurements))

    rows = [
        ComparisonRow.from_times(m1.name, m1.real_time, m2.real_time)
        for m1, m2 in zip(first.measurements[:paired], second.measurements[:paired])
    ]
    skipped = abs(len(first.measurements) - len(second.measurements))

    diff_text = ""
    if source_diff is not None:
        diff_text = source_diff(header.source_root, first.source_hash, second.source_hash)

    time_unit = first.measurements[0].time_unit if first.measurements else "ns"

    return ComparisonReport(
        name=history.name,
        run1=run1,
        run2=run2,
        commentary1=first.commentary,
        commentary2=second.commentary,
        rows=rows,
        skipped=skipped,
        source_diff=diff_text,
        time_unit=time_unit,
    )
