"""Blob storage used to persist the catalog and run histories.

Keys are relative POSIX-style paths such as ``top.json`` or
``mybench/info.json``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from benchtrail.errors import PersistenceFailure

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Key-value byte storage."""

    @abstractmethod
    def read(self, key: str) -> bytes:
        """Return the stored bytes.

        Raises:
            FileNotFoundError: If nothing is stored under ``key``
            PersistenceFailure: If the storage could not be read
        """
        pass

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value atomically."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class FileBlobStore(BlobStore):
    """Blob store backed by files below a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root.joinpath(*key.split("/"))

    def read(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise
        except OSError as e:
            raise PersistenceFailure(str(path), e.strerror or str(e)) from e

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceFailure(str(path), e.strerror or str(e)) from e
        logger.debug("Wrote %d bytes to %s", len(data), path)

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
            # Drop the per-benchmark directory once it is empty.
            if path.parent != self.root and not any(path.parent.iterdir()):
                path.parent.rmdir()
        except OSError as e:
            raise PersistenceFailure(str(path), e.strerror or str(e)) from e


class MemoryBlobStore(BlobStore):
    """In-process blob store, for embedding and tests."""

    def __init__(self, blobs: dict[str, bytes] | None = None):
        self.blobs: dict[str, bytes] = dict(blobs or {})

    def read(self, key: str) -> bytes:
        try:
            return self.blobs[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def write(self, key: str, data: bytes) -> None:
        self.blobs[key] = bytes(data)

    def exists(self, key: str) -> bool:
        return key in self.blobs

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)
