"""Operations that modify the catalog or a benchmark's run history.

Each operation loads the history it touches, changes it in memory and writes
it back in full. Concurrent invocations on the same benchmark are not
detected: the last writer wins.
"""

from __future__ import annotations

import logging
from typing import Iterable

from benchtrail.comparison.resolver import RunSelector
from benchtrail.executor import BenchmarkExecutor
from benchtrail.git import Git
from benchtrail.models import (
    BenchHeader,
    BenchmarkHistory,
    EnvironmentInfo,
    MeasurementResult,
    RunRecord,
)
from benchtrail.store import CatalogStore, HistoryStore

logger = logging.getLogger(__name__)


def register_benchmark(catalog: CatalogStore, name: str, header: BenchHeader) -> None:
    """Register a new benchmark together with its empty history."""
    catalog.register(name, header)


def append_run(
    histories: HistoryStore,
    name: str,
    measurements: Iterable[MeasurementResult],
    commentary: str,
    source_hash: str,
    context: EnvironmentInfo | None = None,
) -> BenchmarkHistory:
    """Append one run to the history of ``name`` and save it.

    The run is built before the history is loaded, so invalid input leaves
    the stored history untouched. ``context`` replaces the stored machine
    context when given.
    """
    record = RunRecord(
        measurements=tuple(MeasurementResult.model_validate(m) for m in measurements),
        commentary=str(commentary),
        source_hash=str(source_hash),
    )
    history = histories.load(name)
    history.append(record)
    if context is not None:
        history.context = context
    histories.save(name, history)
    logger.info("Recorded run #%d for %s", len(history) - 1, name)
    return history


def remove_run(histories: HistoryStore, name: str, selector: RunSelector) -> BenchmarkHistory:
    """Remove one run, or every run, from the history of ``name``.

    Raises:
        OutOfRange: If the selected index is not a recorded run
    """
    history = histories.load(name)
    if selector.is_all:
        removed = len(history)
        history.clear()
    else:
        history.remove(selector.index)
        removed = 1
    histories.save(name, history)
    logger.info("Removed %d run(s) from %s", removed, name)
    return history


def record_run(
    catalog: CatalogStore,
    histories: HistoryStore,
    executor: BenchmarkExecutor,
    git: Git,
    name: str,
    commentary: str,
) -> BenchmarkHistory:
    """Execute the benchmark ``name`` and append the results as a new run."""
    header = catalog.require(name)
    # Fail on a missing or corrupt history before spending time running.
    histories.load(name)

    output = executor.run(header.source_bin)
    source_hash = git.hash(header.source_root)
    return append_run(
        histories, name, output.benchmarks, commentary, source_hash, context=output.context
    )
