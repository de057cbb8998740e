"""Wiring of the store, managers and similarity index over one data root."""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from parley.discussions import DiscussionStore
from parley.errors import NotFoundError
from parley.lib import config, paths
from parley.lib.locks import KeyedLock
from parley.similarity import SimilarityIndex, merge_discussions
from parley.versioning import diff
from parley.versioning.branches import BranchManager
from parley.versioning.restore import RestoreManager
from parley.versioning.snapshots import SnapshotManager

_instance: "Services | None" = None
_instance_lock = threading.Lock()


@dataclass
class Services:
    store: DiscussionStore
    snapshots: SnapshotManager
    restores: RestoreManager
    branches: BranchManager
    index: SimilarityIndex

    @classmethod
    def build(cls, data_root: Path | None = None) -> "Services":
        root = data_root or paths.data_root()
        store = DiscussionStore(paths.discussions_dir(root), KeyedLock())
        snapshots = SnapshotManager(
            store,
            paths.snapshots_dir(root),
            compress=bool(config.get("snapshots.compress", True)),
        )
        restores = RestoreManager(
            store,
            snapshots,
            paths.restores_dir(root),
            allow_cross_discussion=bool(config.get("restore.allow_cross_discussion", False)),
        )
        branches = BranchManager(store, snapshots, paths.branches_dir(root))
        index = SimilarityIndex(
            top_terms=int(config.get("similarity.top_terms", 20)),
            max_keywords=int(config.get("similarity.max_keywords", 10)),
        )
        store.add_listener(index.on_store_change)
        return cls(store, snapshots, restores, branches, index)

    def train(self) -> dict[str, int]:
        return self.index.train(self.store.as_mapping())

    def find_similar(
        self, discussion_id: str, threshold: float | None = None, limit: int | None = None
    ) -> list[dict[str, Any]]:
        self.store.require(discussion_id)
        if not self.index.is_trained:
            self.train()
        if threshold is None:
            threshold = float(config.get("similarity.threshold", 0.1))
        if limit is None:
            limit = int(config.get("similarity.limit", 10))
        return self.index.find_similar(discussion_id, self.store.as_mapping(), threshold, limit)

    def merge(self, target_id: str, source_ids: list[str]) -> dict[str, Any]:
        return merge_discussions(self.store, self.index, target_id, source_ids)

    def compare(self, discussion_id: str, from_id: str, to_id: str) -> dict[str, Any]:
        """Diff two snapshots of a discussion; ``to_id="current"`` diffs against live state."""
        start = self.snapshots.require(from_id)
        if start.discussion_id != discussion_id:
            raise NotFoundError(f"Snapshot {from_id} not found for discussion {discussion_id}")
        if to_id == "current":
            return diff.compare_with_live(start, self.store.require(discussion_id))
        end = self.snapshots.require(to_id)
        if end.discussion_id != discussion_id:
            raise NotFoundError(f"Snapshot {to_id} not found for discussion {discussion_id}")
        return diff.compare_snapshots(start, end)


def get() -> Services:
    """Process-wide services for the configured data root."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = Services.build()
        return _instance


def _reset_for_testing() -> None:
    global _instance
    with _instance_lock:
        _instance = None
