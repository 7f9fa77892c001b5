"""Wiring of stores and collaborators for one workspace directory."""

from __future__ import annotations

from dataclasses import dataclass

from benchtrail.config import TrailConfig
from benchtrail.executor import BenchmarkExecutor
from benchtrail.git import Git
from benchtrail.store import BlobStore, CatalogStore, FileBlobStore, HistoryStore


@dataclass
class Workspace:
    """Everything a command needs, built once from the configuration."""

    config: TrailConfig
    catalog: CatalogStore
    histories: HistoryStore
    executor: BenchmarkExecutor
    git: Git

    @classmethod
    def from_config(cls, config: TrailConfig, blobs: BlobStore | None = None) -> Workspace:
        histories = HistoryStore(blobs or FileBlobStore(config.root_dir))
        return cls(
            config=config,
            catalog=CatalogStore(histories),
            histories=histories,
            executor=BenchmarkExecutor(config.benchmark_format, config.benchmark_args),
            git=Git(config.git_executable, color=config.diff_color),
        )
