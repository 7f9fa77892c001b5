"""Error types raised by the benchtrail core.

Every error carries the exit code the CLI should use when it reaches the top
level. User-input mistakes exit with 0 after being reported; corrupted or
unreadable state exits non-zero.
"""

from __future__ import annotations


class BenchTrailError(Exception):
    """Base class for all benchtrail errors."""

    exit_code: int = 1


class NotFound(BenchTrailError):
    """A benchmark name (or its history) does not exist."""

    exit_code = 0

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = sorted(available or [])
        message = f"Benchmark '{name}' not found."
        if available is not None:
            listing = ", ".join(self.available) if self.available else "none"
            message += f" Available benchmarks: {listing}"
        super().__init__(message)


class AlreadyExists(BenchTrailError):
    exit_code = 0

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Benchmark '{name}' already exists.")


class InvalidName(BenchTrailError):
    exit_code = 0

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Invalid benchmark name {name!r}: it must be a non-empty single path component."
        )


class Unparseable(BenchTrailError):
    """A run token is neither '*' nor a non-negative integer."""

    exit_code = 0

    def __init__(self, token: str):
        self.token = token
        super().__init__(
            f"Unparseable run id {token!r}: expected a non-negative integer or '*'."
        )


class OutOfRange(BenchTrailError):
    """A run index does not address a recorded run."""

    exit_code = 0

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        if length:
            valid = f"valid ids are 0..{length - 1}"
        else:
            valid = "no runs are recorded"
        super().__init__(f"Invalid run id {index}: {valid}.")


class RunOutOfRange(OutOfRange):
    """Raised by the comparison engine for stale run indices."""


class NoRunsRecorded(BenchTrailError):
    exit_code = 0

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Benchmark '{name}' has no recorded runs to compare.")


class CorruptState(BenchTrailError):
    """Persisted state is inconsistent, e.g. it was edited by hand."""

    def __init__(self, name: str, detail: str):
        self.name = name
        self.detail = detail
        super().__init__(
            f"State for '{name}' is inconsistent ({detail}); perhaps it was hand edited?"
        )


class PersistenceFailure(BenchTrailError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to access '{path}': {reason}")


class ExecutionFailure(BenchTrailError):
    """The benchmark executable could not be run or its output not parsed."""

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Benchmark executable '{executable}' failed: {reason}")


class ExternalToolUnavailable(BenchTrailError):
    """An optional external tool (git, matplotlib) is missing."""

    exit_code = 0

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"External tool '{tool}' is unavailable.")


class InvalidConfig(BenchTrailError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config file '{path}': {reason}")
