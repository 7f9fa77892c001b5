"""Execution of benchmark binaries and parsing of their reported results.

Binaries are expected to follow the google/benchmark command line, i.e.
accept ``--benchmark_format=json|csv`` and print results to stdout.

No timeout is applied: a benchmark that hangs blocks the command.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import subprocess
from typing import Any, Iterable

from pydantic import ValidationError

from benchtrail.errors import ExecutionFailure
from benchtrail.models import BenchmarkOutput

logger = logging.getLogger(__name__)

_CSV_HEADER_PREFIX = "name,"
_AGGREGATE_SUFFIXES = frozenset({"mean", "median", "stddev", "cv"})


def _is_error_entry(entry: dict[str, Any]) -> bool:
    flag = entry.get("error_occurred")
    if isinstance(flag, str):
        return flag.strip().lower() == "true"
    return bool(flag)


def _drop_errors(executable: str, entries: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    kept = []
    for entry in entries:
        if _is_error_entry(entry):
            logger.warning(
                "%s: skipping errored measurement %s: %s",
                executable,
                entry.get("name"),
                entry.get("error_message", ""),
            )
            continue
        kept.append(entry)
    return kept


def _is_aggregate_entry(entry: dict[str, Any]) -> bool:
    run_type = entry.get("run_type")
    if run_type is not None:
        return run_type == "aggregate"
    # CSV output carries no run_type column, only the aggregate's name suffix.
    name = entry.get("name") or ""
    return "_" in name and name.rsplit("_", 1)[1] in _AGGREGATE_SUFFIXES


def _drop_aggregates(executable: str, entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep per-repetition measurements; mean/median/stddev/cv rows are derived."""
    kept = [entry for entry in entries if not _is_aggregate_entry(entry)]
    if len(kept) != len(entries):
        logger.info(
            "%s: skipping %d aggregate row(s)", executable, len(entries) - len(kept)
        )
    return kept


def parse_json_output(executable: str, text: str) -> BenchmarkOutput:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExecutionFailure(executable, f"output is not valid JSON ({e.msg})") from e
    if not isinstance(raw, dict):
        raise ExecutionFailure(executable, "JSON output must be an object")

    raw["benchmarks"] = _drop_aggregates(
        executable, _drop_errors(executable, raw.get("benchmarks") or [])
    )
    try:
        return BenchmarkOutput.model_validate(raw)
    except ValidationError as e:
        raise ExecutionFailure(executable, f"unexpected JSON layout: {e}") from e


def parse_csv_output(executable: str, text: str) -> BenchmarkOutput:
    lines = text.splitlines()
    for start, line in enumerate(lines):
        if line.startswith(_CSV_HEADER_PREFIX):
            break
    else:
        raise ExecutionFailure(executable, "CSV output has no header row")

    reader = csv.DictReader(io.StringIO("\n".join(lines[start:])))
    rows = _drop_aggregates(executable, _drop_errors(executable, reader))
    try:
        return BenchmarkOutput.model_validate(
            {"context": None, "benchmarks": [_coerce_csv_row(row) for row in rows]}
        )
    except (ValidationError, KeyError, ValueError) as e:
        raise ExecutionFailure(executable, f"unexpected CSV layout: {e}") from e


def _coerce_csv_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": row["name"],
        "iterations": int(row["iterations"]),
        "real_time": float(row["real_time"]),
        "cpu_time": float(row["cpu_time"]),
        "time_unit": row.get("time_unit") or "ns",
    }


class BenchmarkExecutor:
    """Runs benchmark executables and parses their self reported results."""

    def __init__(self, output_format: str = "json", extra_args: list[str] | None = None):
        if output_format not in {"json", "csv"}:
            raise ValueError(f"Unsupported benchmark format: {output_format}")
        self.output_format = output_format
        self.extra_args = list(extra_args or [])

    def command(self, executable: str) -> list[str]:
        return [executable, f"--benchmark_format={self.output_format}", *self.extra_args]

    def run(self, executable: str) -> BenchmarkOutput:
        """Execute ``executable`` and return its parsed results.

        Raises:
            ExecutionFailure: If it cannot be started, exits non-zero, or
                prints output that cannot be parsed
        """
        command = self.command(executable)
        logger.info("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise ExecutionFailure(executable, e.strerror or str(e)) from e

        if completed.returncode != 0:
            stderr = completed.stderr.strip().splitlines()
            tail = stderr[-1] if stderr else "no error output"
            raise ExecutionFailure(executable, f"exit status {completed.returncode}: {tail}")

        if self.output_format == "csv":
            output = parse_csv_output(executable, completed.stdout)
        else:
            output = parse_json_output(executable, completed.stdout)

        if not output.benchmarks:
            raise ExecutionFailure(executable, "no measurements were reported")
        logger.debug("%s reported %d measurement(s)", executable, len(output.benchmarks))
        return output
