"""Source control lookups for benchmark source trees.

Both lookups return an empty string when git is missing or fails; a missing
hash or diff never aborts a command.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)


class Git:
    """Thin wrapper around the git command line."""

    def __init__(self, executable: str = "git", color: bool = True):
        self.executable = executable
        self.color = color

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def _run(self, source_root: str, *args: str) -> str:
        if not self.is_available():
            logger.warning("%s not found, source information unavailable", self.executable)
            return ""
        try:
            completed = subprocess.run(
                [self.executable, *args],
                cwd=source_root,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            logger.warning("Could not run %s in %s: %s", self.executable, source_root, e)
            return ""
        if completed.returncode != 0:
            logger.warning(
                "%s %s failed in %s: %s",
                self.executable,
                args[0],
                source_root,
                completed.stderr.strip(),
            )
            return ""
        return completed.stdout

    def hash(self, source_root: str) -> str:
        """Return the HEAD commit of ``source_root``."""
        return self._run(source_root, "rev-parse", "HEAD").strip()

    def diff(self, source_root: str, hash1: str, hash2: str) -> str:
        """Return the diff between two commits of ``source_root``."""
        if not hash1 or not hash2:
            logger.info("Missing source hash, skipping diff")
            return ""
        args = ["diff"]
        if self.color:
            args.append("--color=always")
        return self._run(source_root, *args, hash1, hash2)
