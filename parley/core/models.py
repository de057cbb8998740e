"""Shared data models and their record conversions.

Records are the camelCase dicts written to disk and returned over HTTP.
Each entity has an explicit ``*_to_record`` / ``*_from_record`` pair; a record
round trip always produces fresh containers, so converting is also how the
versioning code deep-copies state.
"""

import copy
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

STATUSES = ("initializing", "active", "concluding", "ended", "archived")


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class Message:
    """A single utterance in a discussion."""

    id: str
    role: str
    content: str
    timestamp: int
    round: int = 0
    mentions: list[str] = field(default_factory=list)
    reply_to: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    provenance: dict[str, str] | None = None


@dataclass(frozen=True)
class Discussion:
    """Live discussion state as held by the discussion store."""

    id: str
    topic: str
    status: str = "active"
    messages: list[Message] = field(default_factory=list)
    participants: list[str] = field(default_factory=list)
    rounds: int = 0
    conflicts: list[dict[str, Any]] = field(default_factory=list)
    # Highest msg-N sequence ever issued; never decreases.
    message_seq: int = 0
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)


@dataclass(frozen=True)
class StateContext:
    """Context fields captured alongside messages in snapshots and branches."""

    topic: str
    status: str
    rounds: int
    participants: list[str] = field(default_factory=list)
    conflicts: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class StateData:
    messages: list[Message]
    context: StateContext


@dataclass(frozen=True)
class Snapshot:
    id: str
    discussion_id: str
    version: int
    timestamp: str
    description: str
    type: str
    data: StateData
    tags: list[str] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.data.messages)


@dataclass(frozen=True)
class Branch:
    id: str
    source_discussion_id: str
    name: str
    description: str
    created_at: str
    data: StateData
    snapshot_id: str | None = None


@dataclass(frozen=True)
class RestoreRecord:
    """One applied restore, including the state it replaced."""

    id: str
    discussion_id: str
    snapshot_id: str
    snapshot_version: int
    mode: str
    before: dict[str, Any]
    after: dict[str, Any]
    timestamp: str
    previous: dict[str, Any]


def message_to_record(message: Message) -> dict[str, Any]:
    record = {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "timestamp": message.timestamp,
        "round": message.round,
        "mentions": list(message.mentions),
        "replyTo": message.reply_to,
        "metadata": copy.deepcopy(message.metadata),
    }
    if message.provenance is not None:
        record["provenance"] = dict(message.provenance)
    return record


def message_from_record(record: dict[str, Any]) -> Message:
    provenance = record.get("provenance")
    return Message(
        id=str(record["id"]),
        role=record.get("role", ""),
        content=record.get("content") or "",
        timestamp=int(record.get("timestamp") or 0),
        round=int(record.get("round") or 0),
        mentions=list(record.get("mentions") or []),
        reply_to=record.get("replyTo"),
        metadata=copy.deepcopy(record.get("metadata") or {}),
        provenance=dict(provenance) if provenance else None,
    )


def copy_messages(messages: list[Message]) -> list[Message]:
    return [message_from_record(message_to_record(m)) for m in messages]


def discussion_to_record(discussion: Discussion) -> dict[str, Any]:
    return {
        "id": discussion.id,
        "topic": discussion.topic,
        "status": discussion.status,
        "messages": [message_to_record(m) for m in discussion.messages],
        "participants": list(discussion.participants),
        "rounds": discussion.rounds,
        "conflicts": copy.deepcopy(discussion.conflicts),
        "messageSeq": discussion.message_seq,
        "createdAt": discussion.created_at,
        "updatedAt": discussion.updated_at,
    }


def discussion_from_record(record: dict[str, Any]) -> Discussion:
    return Discussion(
        id=str(record["id"]),
        topic=record.get("topic") or "",
        status=record.get("status") or "active",
        messages=[message_from_record(m) for m in record.get("messages") or []],
        participants=_participant_names(record.get("participants") or []),
        rounds=int(record.get("rounds") or 0),
        conflicts=copy.deepcopy(record.get("conflicts") or []),
        message_seq=int(record.get("messageSeq") or 0),
        created_at=int(record.get("createdAt") or 0),
        updated_at=int(record.get("updatedAt") or 0),
    )


def _participant_names(participants: list[Any]) -> list[str]:
    # Older discussion files store full participant objects.
    names = []
    for p in participants:
        if isinstance(p, dict):
            names.append(str(p.get("role") or p.get("id") or ""))
        else:
            names.append(str(p))
    return names


def context_of(discussion: Discussion) -> StateContext:
    return StateContext(
        topic=discussion.topic,
        status=discussion.status,
        rounds=discussion.rounds,
        participants=list(discussion.participants),
        conflicts=copy.deepcopy(discussion.conflicts),
    )


def state_of(discussion: Discussion) -> StateData:
    """Deep copy of a discussion's messages and context."""
    return StateData(messages=copy_messages(discussion.messages), context=context_of(discussion))


def state_to_record(data: StateData) -> dict[str, Any]:
    return {
        "messages": [message_to_record(m) for m in data.messages],
        "context": {
            "topic": data.context.topic,
            "status": data.context.status,
            "rounds": data.context.rounds,
            "participants": list(data.context.participants),
            "conflicts": copy.deepcopy(data.context.conflicts),
        },
    }


def state_from_record(record: dict[str, Any]) -> StateData:
    context = record.get("context") or {}
    return StateData(
        messages=[message_from_record(m) for m in record.get("messages") or []],
        context=StateContext(
            topic=context.get("topic") or "",
            status=context.get("status") or "active",
            rounds=int(context.get("rounds") or 0),
            participants=_participant_names(context.get("participants") or []),
            conflicts=copy.deepcopy(context.get("conflicts") or []),
        ),
    )


def copy_state(data: StateData) -> StateData:
    return state_from_record(state_to_record(data))


def snapshot_to_record(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "id": snapshot.id,
        "discussionId": snapshot.discussion_id,
        "version": snapshot.version,
        "timestamp": snapshot.timestamp,
        "type": snapshot.type,
        "description": snapshot.description,
        "tags": list(snapshot.tags),
        "messageCount": snapshot.message_count,
        "participants": list(snapshot.data.context.participants),
        "data": state_to_record(snapshot.data),
    }


def snapshot_from_record(record: dict[str, Any]) -> Snapshot:
    return Snapshot(
        id=str(record["id"]),
        discussion_id=str(record["discussionId"]),
        version=int(record["version"]),
        timestamp=record.get("timestamp") or "",
        description=record.get("description") or "",
        type=record.get("type") or "manual",
        tags=list(record.get("tags") or []),
        data=state_from_record(record.get("data") or {}),
    )


def branch_to_record(branch: Branch) -> dict[str, Any]:
    return {
        "id": branch.id,
        "sourceDiscussionId": branch.source_discussion_id,
        "name": branch.name,
        "description": branch.description,
        "createdAt": branch.created_at,
        "snapshotId": branch.snapshot_id,
        "data": state_to_record(branch.data),
    }


def branch_from_record(record: dict[str, Any]) -> Branch:
    return Branch(
        id=str(record["id"]),
        source_discussion_id=str(record["sourceDiscussionId"]),
        name=record.get("name") or "",
        description=record.get("description") or "",
        created_at=record.get("createdAt") or "",
        snapshot_id=record.get("snapshotId"),
        data=state_from_record(record.get("data") or {}),
    )


def restore_to_record(restore: RestoreRecord) -> dict[str, Any]:
    return {
        "id": restore.id,
        "discussionId": restore.discussion_id,
        "snapshotId": restore.snapshot_id,
        "snapshotVersion": restore.snapshot_version,
        "mode": restore.mode,
        "before": dict(restore.before),
        "after": dict(restore.after),
        "timestamp": restore.timestamp,
        "previous": copy.deepcopy(restore.previous),
    }


def restore_from_record(record: dict[str, Any]) -> RestoreRecord:
    return RestoreRecord(
        id=str(record["id"]),
        discussion_id=str(record["discussionId"]),
        snapshot_id=str(record["snapshotId"]),
        snapshot_version=int(record.get("snapshotVersion") or 0),
        mode=record.get("mode") or "replace",
        before=dict(record.get("before") or {}),
        after=dict(record.get("after") or {}),
        timestamp=record.get("timestamp") or "",
        previous=copy.deepcopy(record.get("previous") or {}),
    )
