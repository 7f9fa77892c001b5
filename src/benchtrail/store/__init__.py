"""Storage for the catalog and run histories."""

from benchtrail.store.blob import BlobStore, FileBlobStore, MemoryBlobStore
from benchtrail.store.catalog import CatalogStore, validate_name
from benchtrail.store.history import HistoryStore

__all__ = [
    "BlobStore",
    "CatalogStore",
    "FileBlobStore",
    "HistoryStore",
    "MemoryBlobStore",
    "validate_name",
]
