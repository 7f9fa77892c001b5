"""benchtrail: record benchmark runs over time and compare them."""

from benchtrail.comparison import (
    ALL_RUNS,
    ComparisonReport,
    ComparisonRow,
    Direction,
    RunSelector,
    compare_runs,
    resolve_run_id,
    run_prompt,
)
from benchtrail.config import TrailConfig, load_config
from benchtrail.models import (
    BenchHeader,
    BenchmarkHistory,
    MeasurementResult,
    RunRecord,
)
from benchtrail.operations import append_run, record_run, register_benchmark, remove_run
from benchtrail.store import CatalogStore, FileBlobStore, HistoryStore, MemoryBlobStore
from benchtrail.workspace import Workspace

__all__ = [
    "ALL_RUNS",
    "BenchHeader",
    "BenchmarkHistory",
    "CatalogStore",
    "ComparisonReport",
    "ComparisonRow",
    "Direction",
    "FileBlobStore",
    "HistoryStore",
    "MeasurementResult",
    "MemoryBlobStore",
    "RunRecord",
    "RunSelector",
    "TrailConfig",
    "Workspace",
    "append_run",
    "compare_runs",
    "load_config",
    "record_run",
    "register_benchmark",
    "remove_run",
    "resolve_run_id",
    "run_prompt",
]
