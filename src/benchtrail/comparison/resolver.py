"""Resolution of user supplied run identifiers."""

from __future__ import annotations

import re
from dataclasses import dataclass

from benchtrail.errors import BenchTrailError, OutOfRange, Unparseable
from benchtrail.models import BenchmarkHistory

ALL_TOKEN = "*"
_INDEX_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class RunSelector:
    """Either a single run index or every run of a history.

    Use :func:`resolve_run_id` to obtain one.
    """

    index: int | None = None

    @property
    def is_all(self) -> bool:
        return self.index is None

    def __str__(self) -> str:
        return ALL_TOKEN if self.index is None else str(self.index)


ALL_RUNS = RunSelector()


def resolve_run_id(history: BenchmarkHistory, token: str) -> RunSelector:
    """Parse ``token`` into a selector over ``history``.

    Args:
        history: Loaded history the token refers to
        token: ``"*"`` or a non-negative run index

    Returns:
        The resolved selector

    Raises:
        CorruptState: If the history's run data is inconsistent
        Unparseable: If the token is neither ``"*"`` nor a non-negative integer
        OutOfRange: If the index does not address a recorded run
    """
    history.to_record().check_consistency(history.name)

    token = token.strip()
    if token == ALL_TOKEN:
        return ALL_RUNS
    if not _INDEX_PATTERN.fullmatch(token):
        raise Unparseable(token)

    index = int(token)
    if index >= len(history):
        raise OutOfRange(index, len(history))
    return RunSelector(index=index)


def run_prompt(
    name: str,
    history: BenchmarkHistory,
    error: BenchTrailError | None = None,
    *,
    action: str = "select",
    allow_all: bool = True,
) -> str:
    """Build the next interactive prompt for choosing a run.

    The previous error, if any, is shown first so the user can correct it.
    """
    lines: list[str] = []
    if error is not None:
        lines.append(f"{error} Try again.")
    for index, run in enumerate(history.runs):
        lines.append(f" > Run #{index} (git:{run.short_hash}): {run.commentary}")
    question = f"{name} has {len(history)} runs, which would you like to {action}?"
    if allow_all:
        question += f" (Enter {ALL_TOKEN} for all)"
    lines.append(question)
    return "\n".join(lines)
