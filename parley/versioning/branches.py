"""Branch manager: frozen forks of a discussion that can be merged back."""

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from parley.core.models import (
    Branch,
    branch_from_record,
    branch_to_record,
    copy_messages,
    copy_state,
    now_iso,
    now_ms,
    state_of,
)
from parley.core.protocols import DiscussionRepository
from parley.errors import NotFoundError
from parley.lib import records
from parley.lib.uuid7 import prefixed

from . import diff
from .snapshots import SnapshotManager

logger = logging.getLogger(__name__)


class BranchManager:
    def __init__(self, store: DiscussionRepository, snapshots: SnapshotManager, directory: Path):
        self.store = store
        self.snapshots = snapshots
        self.directory = directory
        self._cache: dict[str, list[Branch]] = {}
        self._cache_lock = threading.Lock()

    def _load(self, discussion_id: str) -> list[Branch]:
        branches = [
            branch_from_record(record)
            for record in records.scan(self.directory)
            if record.get("sourceDiscussionId") == discussion_id
        ]
        branches.sort(key=lambda b: (b.created_at, b.id))
        logger.debug(f"Loaded {len(branches)} branches for {discussion_id}")
        return branches

    def get_branches(self, discussion_id: str) -> list[Branch]:
        """Branches forked from a discussion, oldest first."""
        with self._cache_lock:
            cached = self._cache.get(discussion_id)
            if cached is not None:
                return list(cached)
            branches = self._load(discussion_id)
            if branches or self.store.get(discussion_id) is not None:
                self._cache[discussion_id] = branches
            return list(branches)

    def create_branch(
        self,
        source_discussion_id: str,
        name: str | None = None,
        description: str = "",
        snapshot_id: str | None = None,
    ) -> Branch:
        """Fork a discussion, from its live state or from one of its snapshots."""
        with self.store.locks.hold(source_discussion_id):
            discussion = self.store.get(source_discussion_id)
            if discussion is None:
                raise NotFoundError(f"Source discussion {source_discussion_id} not found")

            if snapshot_id:
                snapshot = self.snapshots.get_snapshot(snapshot_id)
                if snapshot is None or snapshot.discussion_id != source_discussion_id:
                    raise NotFoundError(
                        f"Snapshot {snapshot_id} not found for discussion {source_discussion_id}"
                    )
                data = copy_state(snapshot.data)
            else:
                data = state_of(discussion)

            existing = self.get_branches(source_discussion_id)
            branch = Branch(
                id=prefixed("branch"),
                source_discussion_id=source_discussion_id,
                name=name or f"分支 {len(existing) + 1}",
                description=description or "",
                created_at=now_iso(),
                snapshot_id=snapshot_id or None,
                data=data,
            )
            records.write(self.directory, branch.id, branch_to_record(branch))

            with self._cache_lock:
                self._cache[source_discussion_id] = [*existing, branch]

        logger.info(f"Created branch {branch.id} from discussion {source_discussion_id}")
        return branch

    def get_branch(self, branch_id: str) -> Branch | None:
        with self._cache_lock:
            for branches in self._cache.values():
                for branch in branches:
                    if branch.id == branch_id:
                        return branch
        record = records.read(self.directory, branch_id)
        if record is None:
            return None
        return branch_from_record(record)

    def require(self, branch_id: str) -> Branch:
        branch = self.get_branch(branch_id)
        if branch is None:
            raise NotFoundError(f"Branch {branch_id} not found")
        return branch

    def delete_branch(self, branch_id: str) -> bool:
        removed = records.delete(self.directory, branch_id)

        with self._cache_lock:
            for discussion_id, branches in list(self._cache.items()):
                remaining = [b for b in branches if b.id != branch_id]
                if len(remaining) != len(branches):
                    self._cache[discussion_id] = remaining
                    removed = True

        if removed:
            logger.info(f"Deleted branch {branch_id}")
        return removed

    def merge_branch(self, branch_id: str) -> dict[str, Any]:
        """Append branch messages the source discussion does not have yet.

        Messages whose id already exists in the target are never overwritten,
        even when their content differs; their ids come back in
        ``skippedIds``. ``mergedCount`` counts appended messages only.
        """
        branch = self.require(branch_id)
        target_id = branch.source_discussion_id

        with self.store.locks.hold(target_id):
            target = self.store.get(target_id)
            if target is None:
                raise NotFoundError(f"Target discussion {target_id} not found")

            existing = {m.id for m in target.messages}
            incoming = [m for m in branch.data.messages if m.id not in existing]
            skipped = [m.id for m in branch.data.messages if m.id in existing]

            if incoming:
                self.store.save(
                    replace(
                        target,
                        messages=[*target.messages, *copy_messages(incoming)],
                        updated_at=now_ms(),
                    )
                )

        logger.info(
            f"Merged branch {branch_id} into discussion {target_id}: "
            f"{len(incoming)} appended, {len(skipped)} already present"
        )
        return {"success": True, "mergedCount": len(incoming), "skippedIds": skipped}

    def compare_branch(self, branch_id: str) -> dict[str, Any]:
        branch = self.require(branch_id)
        target = self.store.get(branch.source_discussion_id)
        if target is None:
            raise NotFoundError(f"Target discussion {branch.source_discussion_id} not found")

        return {
            "branch": branch_to_record(branch),
            "target": {
                "discussionId": target.id,
                "messageCount": len(target.messages),
                "topic": target.topic,
            },
            "changes": diff.compare_message_lists(target.messages, branch.data.messages),
        }
