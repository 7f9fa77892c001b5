"""Persistence of per-benchmark run histories."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from benchtrail.errors import CorruptState, NotFound
from benchtrail.models import BenchmarkHistory, HistoryRecord
from benchtrail.store.blob import BlobStore

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "info.json"


def history_key(name: str) -> str:
    return f"{name}/{HISTORY_FILE_NAME}"


class HistoryStore:
    """Loads and saves the run history of each benchmark."""

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    def exists(self, name: str) -> bool:
        return self.blobs.exists(history_key(name))

    def load(self, name: str) -> BenchmarkHistory:
        """Load the history of ``name``.

        Raises:
            NotFound: If no history has been stored for ``name``
            CorruptState: If the stored data cannot be decoded or its
                parallel arrays differ in length
        """
        try:
            raw = self.blobs.read(history_key(name))
        except FileNotFoundError:
            raise NotFound(name) from None

        try:
            record = HistoryRecord.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptState(name, f"undecodable history: {e.error_count()} error(s)") from e

        history = record.to_history(name)
        logger.debug("Loaded %d run(s) for %s", len(history), name)
        return history

    def save(self, name: str, history: BenchmarkHistory) -> None:
        record = history.to_record()
        record.check_consistency(name)
        self.blobs.write(history_key(name), record.model_dump_json(indent=2).encode("utf-8"))
        logger.debug("Saved %d run(s) for %s", len(history), name)

    def create(self, name: str) -> BenchmarkHistory:
        """Write an empty history for ``name`` and return it."""
        if self.exists(name):
            logger.warning("Overwriting orphaned history for %s", name)
        history = BenchmarkHistory(name=name)
        self.save(name, history)
        return history

    def discard(self, name: str) -> None:
        self.blobs.delete(history_key(name))
