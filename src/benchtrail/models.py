"""Data model for benchmark headers, measurements and run history.

The persisted history keeps three parallel arrays (``benchmarks``,
``commentary`` and ``source_hashes``). In memory a history is an ordered list
of :class:`RunRecord` composites, so the arrays can only disagree on disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from benchtrail.errors import CorruptState, OutOfRange


class BenchHeader(BaseModel):
    """Static description of a registered benchmark."""

    model_config = {"frozen": True}

    source_root: str = Field(..., description="Root of the source tree under version control")
    source_bin: str = Field(..., description="Path to the benchmark executable")
    description: str = Field(default="", description="Free text description")


class MeasurementResult(BaseModel):
    """One timing sample reported by a benchmark executable."""

    model_config = {"frozen": True, "extra": "ignore"}

    name: str
    iterations: int
    real_time: float
    cpu_time: float
    time_unit: str = "ns"


class CpuCacheInfo(BaseModel):
    model_config = {"extra": "allow"}

    type: str | None = None
    level: int
    size: int
    num_sharing: int


class EnvironmentInfo(BaseModel):
    """Machine context reported alongside a benchmark run."""

    model_config = {"extra": "allow"}

    date: str | None = None
    executable: str | None = None
    num_cpus: int | None = None
    mhz_per_cpu: int | None = None
    cpu_scaling_enabled: bool | None = None
    caches: list[CpuCacheInfo] = Field(default_factory=list)
    library_build_type: str | None = None


class BenchmarkOutput(BaseModel):
    """Parsed output of a single benchmark executable invocation."""

    context: EnvironmentInfo | None = None
    benchmarks: list[MeasurementResult] = Field(default_factory=list)


class HistoryRecord(BaseModel):
    """On-disk shape of a benchmark history."""

    context: EnvironmentInfo | None = None
    commentary: list[str] = Field(default_factory=list)
    benchmarks: list[list[MeasurementResult]] = Field(default_factory=list)
    source_hashes: list[str] = Field(default_factory=list)

    def check_consistency(self, name: str) -> None:
        """Raise CorruptState unless the three arrays have equal length."""
        lengths = {
            "benchmarks": len(self.benchmarks),
            "commentary": len(self.commentary),
            "source_hashes": len(self.source_hashes),
        }
        if len(set(lengths.values())) != 1:
            detail = ", ".join(f"{key}={value}" for key, value in lengths.items())
            raise CorruptState(name, f"parallel arrays differ in length: {detail}")

    def to_history(self, name: str) -> BenchmarkHistory:
        self.check_consistency(name)
        runs = [
            RunRecord(
                measurements=tuple(measurements),
                commentary=commentary,
                source_hash=source_hash,
            )
            for measurements, commentary, source_hash in zip(
                self.benchmarks, self.commentary, self.source_hashes
            )
        ]
        return BenchmarkHistory(name=name, runs=runs, context=self.context)


Catalog = dict[str, BenchHeader]
CatalogAdapter: TypeAdapter[Catalog] = TypeAdapter(Catalog)


@dataclass(frozen=True)
class RunRecord:
    """A single recorded execution of a benchmark."""

    measurements: tuple[MeasurementResult, ...]
    commentary: str
    source_hash: str

    @property
    def short_hash(self) -> str:
        return self.source_hash[:8] if self.source_hash else "-"


@dataclass
class BenchmarkHistory:
    """Ordered runs recorded for one benchmark."""

    name: str
    runs: list[RunRecord] = field(default_factory=list)
    context: EnvironmentInfo | None = None

    def __len__(self) -> int:
        return len(self.runs)

    @property
    def benchmarks(self) -> list[list[MeasurementResult]]:
        return [list(run.measurements) for run in self.runs]

    @property
    def commentary(self) -> list[str]:
        return [run.commentary for run in self.runs]

    @property
    def source_hashes(self) -> list[str]:
        return [run.source_hash for run in self.runs]

    def run(self, index: int) -> RunRecord:
        self.check_index(index)
        return self.runs[index]

    def check_index(self, index: int) -> None:
        if not 0 <= index < len(self.runs):
            raise OutOfRange(index, len(self.runs))

    def append(self, record: RunRecord) -> None:
        self.runs.append(record)

    def remove(self, index: int) -> RunRecord:
        self.check_index(index)
        return self.runs.pop(index)

    def clear(self) -> None:
        self.runs.clear()

    def to_record(self) -> HistoryRecord:
        return HistoryRecord(
            context=self.context,
            commentary=self.commentary,
            benchmarks=self.benchmarks,
            source_hashes=self.source_hashes,
        )

    def describe(self) -> list[dict[str, Any]]:
        """Summaries of each run for listing purposes."""
        return [
            {
                "run": index,
                "source_hash": run.short_hash,
                "commentary": run.commentary,
                "measurements": len(run.measurements),
            }
            for index, run in enumerate(self.runs)
        ]
