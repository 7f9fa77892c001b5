"""Persistence of the benchmark catalog (name -> header)."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from benchtrail.config import CONFIG_FILE_NAME
from benchtrail.errors import AlreadyExists, CorruptState, InvalidName, NotFound, PersistenceFailure
from benchtrail.models import BenchHeader, Catalog, CatalogAdapter
from benchtrail.store.history import HistoryStore

logger = logging.getLogger(__name__)

CATALOG_KEY = "top.json"

# Names that would shadow files kept at the workspace root.
RESERVED_NAMES = frozenset({CATALOG_KEY, CONFIG_FILE_NAME})


def validate_name(name: str) -> str:
    """Return ``name`` if it can be used as a single path component."""
    if not name or name != name.strip() or name in {".", ".."}:
        raise InvalidName(name)
    if name in RESERVED_NAMES:
        raise InvalidName(name)
    if "/" in name or "\\" in name or "\x00" in name:
        raise InvalidName(name)
    return name


class CatalogStore:
    """The mapping of benchmark names to their headers."""

    def __init__(self, histories: HistoryStore):
        self.histories = histories
        self.blobs = histories.blobs

    def list(self) -> Catalog:
        """Return the whole catalog; empty if nothing was registered yet."""
        try:
            raw = self.blobs.read(CATALOG_KEY)
        except FileNotFoundError:
            return {}
        if not raw.strip():
            return {}
        try:
            return CatalogAdapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptState(CATALOG_KEY, f"undecodable catalog: {e.error_count()} error(s)") from e

    def get(self, name: str) -> BenchHeader | None:
        return self.list().get(name)

    def require(self, name: str) -> BenchHeader:
        """Like :meth:`get`, raising NotFound with the available names."""
        catalog = self.list()
        if name not in catalog:
            raise NotFound(name, list(catalog))
        return catalog[name]

    def register(self, name: str, header: BenchHeader) -> None:
        """Add ``name`` to the catalog and create its empty history.

        Both writes succeed or the history is rolled back.

        Raises:
            AlreadyExists: If ``name`` is already registered
            InvalidName: If ``name`` is not a usable path component
            PersistenceFailure: If either write fails
        """
        validate_name(name)
        catalog = self.list()
        if name in catalog:
            raise AlreadyExists(name)

        self.histories.create(name)
        catalog[name] = header
        try:
            self._write(catalog)
        except PersistenceFailure:
            logger.warning("Catalog write failed, rolling back history for %s", name)
            self.histories.discard(name)
            raise
        logger.info("Registered benchmark %s", name)

    def _write(self, catalog: Catalog) -> None:
        data = CatalogAdapter.dump_json(catalog, indent=2)
        self.blobs.write(CATALOG_KEY, data)
