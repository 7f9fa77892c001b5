"""Run resolution and comparison for benchtrail."""

from benchtrail.comparison.engine import (
    ComparisonReport,
    ComparisonRow,
    Direction,
    compare_runs,
)
from benchtrail.comparison.resolver import (
    ALL_RUNS,
    RunSelector,
    resolve_run_id,
    run_prompt,
)

__all__ = [
    "ALL_RUNS",
    "ComparisonReport",
    "ComparisonRow",
    "Direction",
    "RunSelector",
    "compare_runs",
    "resolve_run_id",
    "run_prompt",
]
