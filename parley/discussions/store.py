"""Discussion store: in-memory map backed by one JSON file per discussion."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from parley.core.models import (
    STATUSES,
    Discussion,
    Message,
    discussion_from_record,
    discussion_to_record,
    now_ms,
)
from parley.core.protocols import ChangeListener
from parley.errors import InvalidArgumentError, NotFoundError
from parley.lib import records
from parley.lib.locks import KeyedLock
from parley.lib.uuid7 import prefixed

logger = logging.getLogger(__name__)

_MENTION = re.compile(r"@([\w-]+)")
_SEQUENTIAL_ID = re.compile(r"^msg-(\d+)$")


def parse_mentions(content: str) -> list[str]:
    """Extract unique @mentions in order of appearance."""
    seen = []
    for name in _MENTION.findall(content):
        if name not in seen:
            seen.append(name)
    return seen


def next_message_seq(messages: list[Message], issued: int = 0) -> int:
    """Next msg-N sequence, above every id ever issued in the discussion."""
    highest = issued
    for message in messages:
        match = _SEQUENTIAL_ID.match(message.id)
        if match:
            highest = max(highest, int(match.group(1)))
    return max(highest, len(messages)) + 1


class DiscussionStore:
    def __init__(self, directory: Path, locks: KeyedLock | None = None):
        self.directory = directory
        self.locks = locks or KeyedLock()
        self._discussions: dict[str, Discussion] = {}
        self._loaded_all = False
        self._load_guard = threading.Lock()
        self._listeners: list[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback invoked with (id, discussion) after save and (id, None) after delete."""
        self._listeners.append(listener)

    def _notify(self, discussion_id: str, discussion: Discussion | None) -> None:
        for listener in self._listeners:
            listener(discussion_id, discussion)

    def get(self, discussion_id: str) -> Discussion | None:
        cached = self._discussions.get(discussion_id)
        if cached is not None or self._loaded_all:
            return cached
        record = records.read(self.directory, discussion_id)
        if record is None:
            return None
        discussion = discussion_from_record(record)
        self._discussions.setdefault(discussion_id, discussion)
        return self._discussions[discussion_id]

    def list(self) -> list[Discussion]:
        with self._load_guard:
            if not self._loaded_all:
                for record in records.scan(self.directory):
                    discussion = discussion_from_record(record)
                    self._discussions.setdefault(discussion.id, discussion)
                self._loaded_all = True
                logger.debug(f"Loaded {len(self._discussions)} discussions from {self.directory}")
        return sorted(self._discussions.values(), key=lambda d: d.created_at)

    def as_mapping(self) -> dict[str, Discussion]:
        return {d.id: d for d in self.list()}

    def save(self, discussion: Discussion) -> Discussion:
        records.write(self.directory, discussion.id, discussion_to_record(discussion))
        self._discussions[discussion.id] = discussion
        self._notify(discussion.id, discussion)
        return discussion

    def delete(self, discussion_id: str) -> bool:
        removed = records.delete(self.directory, discussion_id)
        existed = self._discussions.pop(discussion_id, None) is not None
        if removed or existed:
            self._notify(discussion_id, None)
            logger.info(f"Deleted discussion {discussion_id}")
        return removed or existed

    def create(
        self, topic: str, participants: list[str] | None = None, status: str = "active"
    ) -> Discussion:
        if not topic:
            raise InvalidArgumentError("Discussion topic is required")
        if status not in STATUSES:
            raise InvalidArgumentError(f"Unknown status '{status}'")
        discussion = Discussion(
            id=prefixed("disc"),
            topic=topic,
            status=status,
            participants=list(participants or []),
        )
        self.save(discussion)
        logger.info(f"Created discussion {discussion.id}: {topic}")
        return discussion

    def require(self, discussion_id: str) -> Discussion:
        discussion = self.get(discussion_id)
        if discussion is None:
            raise NotFoundError(f"Discussion {discussion_id} not found")
        return discussion

    def add_message(
        self,
        discussion_id: str,
        role: str,
        content: str,
        reply_to: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message (an agent speaking) and persist the discussion."""
        if not role:
            raise InvalidArgumentError("role is required")
        with self.locks.hold(discussion_id):
            discussion = self.require(discussion_id)
            seq = next_message_seq(discussion.messages, discussion.message_seq)
            message = Message(
                id=f"msg-{seq}",
                role=role,
                content=content,
                timestamp=now_ms(),
                round=discussion.rounds,
                mentions=parse_mentions(content),
                reply_to=reply_to,
                metadata=dict(metadata or {}),
            )
            self.save(
                replace(
                    discussion,
                    messages=[*discussion.messages, message],
                    message_seq=seq,
                    updated_at=now_ms(),
                )
            )
        return message

    def update(self, discussion_id: str, **changes: Any) -> Discussion:
        """Replace context fields (topic, status, rounds, conflicts) on a discussion."""
        allowed = {"topic", "status", "rounds", "conflicts", "participants"}
        unknown = set(changes) - allowed
        if unknown:
            raise InvalidArgumentError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "status" in changes and changes["status"] not in STATUSES:
            raise InvalidArgumentError(f"Unknown status '{changes['status']}'")
        with self.locks.hold(discussion_id):
            discussion = self.require(discussion_id)
            return self.save(replace(discussion, **changes, updated_at=now_ms()))
