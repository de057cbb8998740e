"""Restore manager: apply a snapshot back onto a live discussion."""

import copy
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from parley.core.models import (
    Discussion,
    RestoreRecord,
    copy_messages,
    discussion_from_record,
    discussion_to_record,
    message_to_record,
    now_iso,
    now_ms,
    restore_from_record,
    restore_to_record,
)
from parley.core.protocols import DiscussionRepository
from parley.errors import InvalidArgumentError, NotFoundError
from parley.lib import records
from parley.lib.uuid7 import prefixed

from . import diff
from .snapshots import SnapshotManager

logger = logging.getLogger(__name__)

RESTORE_MODES = ("replace", "merge")
MODE_ALIASES = {"full": "replace"}


def _normalize_mode(mode: str | None) -> str:
    mode = MODE_ALIASES.get(mode or "replace", mode or "replace")
    if mode not in RESTORE_MODES:
        raise InvalidArgumentError(f"Unknown restore mode '{mode}'")
    return mode


def _summary_of(discussion: Discussion) -> dict[str, Any]:
    return {
        "messageCount": len(discussion.messages),
        "topic": discussion.topic,
        "status": discussion.status,
        "timestamp": now_iso(),
    }


class RestoreManager:
    def __init__(
        self,
        store: DiscussionRepository,
        snapshots: SnapshotManager,
        directory: Path,
        allow_cross_discussion: bool = False,
    ):
        self.store = store
        self.snapshots = snapshots
        self.directory = directory
        self.allow_cross_discussion = allow_cross_discussion

    def _snapshot_for(self, discussion_id: str, snapshot_id: str, allow_cross: bool):
        snapshot = self.snapshots.get_snapshot(snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot {snapshot_id} not found")
        if snapshot.discussion_id != discussion_id and not allow_cross:
            raise NotFoundError(
                f"Snapshot {snapshot_id} does not belong to discussion {discussion_id}"
            )
        return snapshot

    def restore(
        self,
        discussion_id: str,
        snapshot_id: str,
        mode: str = "replace",
        allow_cross: bool | None = None,
        include_context: bool = False,
    ) -> dict[str, Any]:
        """Apply a snapshot to a discussion.

        ``replace`` overwrites messages and context with fresh copies of the
        snapshot's. ``merge`` appends snapshot messages whose ids are absent
        from the discussion, after the existing ones; context is only taken
        from the snapshot when ``include_context`` is set.
        """
        mode = _normalize_mode(mode)
        if allow_cross is None:
            allow_cross = self.allow_cross_discussion
        snapshot = self._snapshot_for(discussion_id, snapshot_id, allow_cross)

        with self.store.locks.hold(discussion_id):
            current = self.store.get(discussion_id)
            if current is None:
                raise NotFoundError(f"Discussion {discussion_id} not found")

            context = snapshot.data.context
            if mode == "replace":
                restored = replace(
                    current,
                    messages=copy_messages(snapshot.data.messages),
                    topic=context.topic,
                    status=context.status,
                    rounds=context.rounds,
                    participants=list(context.participants),
                    conflicts=copy.deepcopy(context.conflicts),
                    updated_at=now_ms(),
                )
            else:
                existing = {m.id for m in current.messages}
                missing = [m for m in snapshot.data.messages if m.id not in existing]
                restored = replace(
                    current,
                    messages=[*current.messages, *copy_messages(missing)],
                    updated_at=now_ms(),
                )
                if include_context:
                    restored = replace(
                        restored,
                        topic=context.topic,
                        status=context.status,
                        rounds=context.rounds,
                    )

            message_changes = diff.compare_message_lists(current.messages, restored.messages)
            context_changes = {
                name: getattr(current, name) != getattr(restored, name)
                for name in diff.CONTEXT_FIELDS
            }

            record = RestoreRecord(
                id=prefixed("restore"),
                discussion_id=discussion_id,
                snapshot_id=snapshot.id,
                snapshot_version=snapshot.version,
                mode=mode,
                before=_summary_of(current),
                after=_summary_of(restored),
                timestamp=now_iso(),
                previous=discussion_to_record(current),
            )
            records.write(self.directory, record.id, restore_to_record(record))
            self.store.save(restored)

        changes = {
            **message_changes["stats"],
            "contextChanged": [name for name, changed in context_changes.items() if changed],
        }
        logger.info(
            f"Restored discussion {discussion_id} to snapshot {snapshot.id} "
            f"(v{snapshot.version}, {mode}): {changes}"
        )
        return {
            "discussionId": discussion_id,
            "snapshotId": snapshot.id,
            "mode": mode,
            "changes": changes,
            "restoreId": record.id,
        }

    def preview_restore(self, discussion_id: str, snapshot_id: str) -> dict[str, Any]:
        """What a replace restore would do, without applying it."""
        snapshot = self._snapshot_for(discussion_id, snapshot_id, self.allow_cross_discussion)
        current = self.store.get(discussion_id)
        if current is None:
            raise NotFoundError(f"Discussion {discussion_id} not found")

        snap_messages = snapshot.data.messages
        snap_context = snapshot.data.context
        return {
            "current": {
                "messageCount": len(current.messages),
                "topic": current.topic,
                "status": current.status,
                "lastMessage": message_to_record(current.messages[-1]) if current.messages else None,
            },
            "snapshot": {
                "messageCount": len(snap_messages),
                "topic": snap_context.topic,
                "status": snap_context.status,
                "lastMessage": message_to_record(snap_messages[-1]) if snap_messages else None,
                "timestamp": snapshot.timestamp,
            },
            "changes": {
                "messageDelta": len(snap_messages) - len(current.messages),
                "topicChanged": snap_context.topic != current.topic,
                "statusChanged": snap_context.status != current.status,
                "willLoseMessages": len(snap_messages) < len(current.messages),
            },
            "diff": diff.compare_message_lists(current.messages, snap_messages)["stats"],
        }

    def get_restore_history(self, discussion_id: str) -> list[RestoreRecord]:
        history = [
            restore_from_record(record)
            for record in records.scan(self.directory)
            if record.get("discussionId") == discussion_id
        ]
        history.sort(key=lambda r: (r.timestamp, r.id))
        return history

    def undo_restore(self, discussion_id: str, restore_id: str) -> dict[str, Any]:
        """Put back the discussion state a restore replaced."""
        record = records.read(self.directory, restore_id)
        if record is None or record.get("discussionId") != discussion_id:
            raise NotFoundError(f"Restore {restore_id} not found for discussion {discussion_id}")
        restore = restore_from_record(record)

        with self.store.locks.hold(discussion_id):
            current = self.store.get(discussion_id)
            if current is None:
                raise NotFoundError(f"Discussion {discussion_id} not found")
            previous = discussion_from_record(restore.previous)
            self.store.save(
                replace(
                    previous,
                    message_seq=max(previous.message_seq, current.message_seq),
                    updated_at=now_ms(),
                )
            )

        logger.info(f"Undid restore {restore_id} on discussion {discussion_id}")
        return {
            "success": True,
            "restoreId": restore_id,
            "messageCount": len(previous.messages),
        }
