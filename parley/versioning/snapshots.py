"""Snapshot manager: immutable, versioned copies of a discussion's state."""

import logging
import threading
from pathlib import Path

from parley.core.models import (
    Snapshot,
    now_iso,
    snapshot_from_record,
    snapshot_to_record,
    state_of,
)
from parley.core.protocols import DiscussionRepository
from parley.errors import InvalidArgumentError, NotFoundError
from parley.lib import records
from parley.lib.uuid7 import prefixed

logger = logging.getLogger(__name__)

SNAPSHOT_TYPES = ("manual", "auto")

AUTO_DESCRIPTIONS = {
    "end": "讨论结束",
    "consensus": "达成共识",
    "conflict": "冲突解决",
    "timer": "定时快照",
}


class SnapshotManager:
    def __init__(self, store: DiscussionRepository, directory: Path, compress: bool = True):
        self.store = store
        self.directory = directory
        self.compress = compress
        self._cache: dict[str, list[Snapshot]] = {}
        self._cache_lock = threading.Lock()

    def _load(self, discussion_id: str) -> list[Snapshot]:
        snapshots = [
            snapshot_from_record(record)
            for record in records.scan(self.directory)
            if record.get("discussionId") == discussion_id
        ]
        snapshots.sort(key=lambda s: s.version)
        logger.debug(f"Loaded {len(snapshots)} snapshots for {discussion_id}")
        return snapshots

    def get_snapshots(self, discussion_id: str) -> list[Snapshot]:
        """All snapshots of a discussion, ascending by version."""
        with self._cache_lock:
            cached = self._cache.get(discussion_id)
            if cached is not None:
                return list(cached)
            snapshots = self._load(discussion_id)
            if snapshots or self.store.get(discussion_id) is not None:
                self._cache[discussion_id] = snapshots
            return list(snapshots)

    def next_version(self, discussion_id: str) -> int:
        return max((s.version for s in self.get_snapshots(discussion_id)), default=0) + 1

    def create_snapshot(
        self,
        discussion_id: str,
        description: str | None = None,
        tags: list[str] | None = None,
        type: str = "manual",
    ) -> Snapshot:
        if type not in SNAPSHOT_TYPES:
            raise InvalidArgumentError(f"Unknown snapshot type '{type}'")

        with self.store.locks.hold(discussion_id):
            discussion = self.store.get(discussion_id)
            if discussion is None:
                raise NotFoundError(f"Discussion {discussion_id} not found")

            snapshot = Snapshot(
                id=prefixed("snap"),
                discussion_id=discussion_id,
                version=self.next_version(discussion_id),
                timestamp=now_iso(),
                description=description or "手动快照",
                type=type,
                tags=list(tags or []),
                data=state_of(discussion),
            )
            records.write(
                self.directory, snapshot.id, snapshot_to_record(snapshot), compress=self.compress
            )

            with self._cache_lock:
                current = self._cache.get(discussion_id, [])
                self._cache[discussion_id] = [*current, snapshot]

        logger.info(
            f"Created snapshot {snapshot.id} (v{snapshot.version}) for discussion {discussion_id}"
        )
        return snapshot

    def auto_snapshot(self, discussion_id: str, trigger: str) -> Snapshot:
        """Snapshot taken on a lifecycle trigger (end, consensus, conflict, timer)."""
        return self.create_snapshot(
            discussion_id,
            description=AUTO_DESCRIPTIONS.get(trigger, "自动快照"),
            tags=[trigger],
            type="auto",
        )

    def get_snapshot(self, snapshot_id: str) -> Snapshot | None:
        with self._cache_lock:
            for snapshots in self._cache.values():
                for snapshot in snapshots:
                    if snapshot.id == snapshot_id:
                        return snapshot
        record = records.read(self.directory, snapshot_id)
        if record is None:
            return None
        return snapshot_from_record(record)

    def require(self, snapshot_id: str) -> Snapshot:
        snapshot = self.get_snapshot(snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot {snapshot_id} not found")
        return snapshot

    def delete_snapshot(self, snapshot_id: str) -> bool:
        """Delete a snapshot. Returns False when it does not exist."""
        removed = records.delete(self.directory, snapshot_id)

        with self._cache_lock:
            for discussion_id, snapshots in list(self._cache.items()):
                remaining = [s for s in snapshots if s.id != snapshot_id]
                if len(remaining) != len(snapshots):
                    self._cache[discussion_id] = remaining
                    removed = True

        if removed:
            logger.info(f"Deleted snapshot {snapshot_id}")
        return removed
