from __future__ import annotations

from typing import Callable

import pytest

from benchtrail.models import BenchHeader, BenchmarkHistory, MeasurementResult, RunRecord
from benchtrail.store import CatalogStore, HistoryStore, MemoryBlobStore


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def histories(blobs: MemoryBlobStore) -> HistoryStore:
    return HistoryStore(blobs)


@pytest.fixture
def catalog(histories: HistoryStore) -> CatalogStore:
    return CatalogStore(histories)


@pytest.fixture
def header() -> BenchHeader:
    return BenchHeader(source_root="/src/demo", source_bin="/src/demo/bench", description="demo")


def measurement(name: str, real_time: float, cpu_time: float | None = None) -> MeasurementResult:
    return MeasurementResult(
        name=name,
        iterations=1000,
        real_time=real_time,
        cpu_time=real_time if cpu_time is None else cpu_time,
        time_unit="ns",
    )


@pytest.fixture
def make_measurement() -> Callable[..., MeasurementResult]:
    return measurement


@pytest.fixture
def make_history() -> Callable[..., BenchmarkHistory]:
    """Build a history from lists of real times, one list per run."""

    def _make(*runs: list[float], name: str = "demo") -> BenchmarkHistory:
        return BenchmarkHistory(
            name=name,
            runs=[
                RunRecord(
                    measurements=tuple(
                        measurement(f"BM_case/{k}", t) for k, t in enumerate(times)
                    ),
                    commentary=f"run {i}",
                    source_hash=f"{i:040x}",
                )
                for i, times in enumerate(runs)
            ],
        )

    return _make
