"""Structural diffs between message lists, snapshots and live discussions.

Pure functions; nothing here touches storage. Message identity is by id
only, never by position.
"""

from typing import Any

from parley.core.models import (
    Discussion,
    Message,
    Snapshot,
    StateContext,
    context_of,
    message_to_record,
)

CONTEXT_FIELDS = ("topic", "status", "rounds")

_SUMMARY_LABELS = {
    "topic": "主题已更改",
    "status": "状态已更改",
    "rounds": "轮次已更改",
}


def compare_message_lists(old: list[Message], new: list[Message]) -> dict[str, Any]:
    """Classify messages as added, removed or modified between two lists."""
    old_by_id = {m.id: m for m in old}
    new_by_id = {m.id: m for m in new}

    added = []
    modified = []
    for message in new:
        previous = old_by_id.get(message.id)
        if previous is None:
            added.append(message_to_record(message))
        elif previous.content != message.content:
            modified.append(
                {
                    "id": message.id,
                    "role": message.role,
                    "old": message_to_record(previous),
                    "new": message_to_record(message),
                }
            )

    removed = [message_to_record(m) for m in old if m.id not in new_by_id]

    return {
        "added": added,
        "removed": removed,
        "modified": modified,
        "stats": {"added": len(added), "removed": len(removed), "modified": len(modified)},
    }


def compare_contexts(old: StateContext, new: StateContext) -> dict[str, dict[str, Any]]:
    changes = {}
    for name in CONTEXT_FIELDS:
        before = getattr(old, name)
        after = getattr(new, name)
        changes[name] = {"old": before, "new": after, "changed": before != after}
    return changes


def generate_summary(changes: dict[str, Any]) -> str:
    stats = changes["messageChanges"]["stats"]
    parts = []
    if stats["added"]:
        parts.append(f"新增 {stats['added']} 条消息")
    if stats["removed"]:
        parts.append(f"删除 {stats['removed']} 条消息")
    if stats["modified"]:
        parts.append(f"修改 {stats['modified']} 条消息")
    for name in CONTEXT_FIELDS:
        if changes["contextChanges"][name]["changed"]:
            parts.append(_SUMMARY_LABELS[name])
    return "，".join(parts) if parts else "无变化"


def _endpoint(snapshot: Snapshot) -> dict[str, Any]:
    return {"id": snapshot.id, "version": snapshot.version, "timestamp": snapshot.timestamp}


def _build(
    start: dict[str, Any],
    end: dict[str, Any],
    old_messages: list[Message],
    new_messages: list[Message],
    old_context: StateContext,
    new_context: StateContext,
) -> dict[str, Any]:
    changes = {
        "from": start,
        "to": end,
        "messageChanges": compare_message_lists(old_messages, new_messages),
        "contextChanges": compare_contexts(old_context, new_context),
    }
    changes["summary"] = generate_summary(changes)
    return changes


def compare_snapshots(s1: Snapshot, s2: Snapshot) -> dict[str, Any]:
    return _build(
        _endpoint(s1),
        _endpoint(s2),
        s1.data.messages,
        s2.data.messages,
        s1.data.context,
        s2.data.context,
    )


def live_endpoint(discussion: Discussion) -> dict[str, Any]:
    return {"id": "current", "version": None, "timestamp": discussion.updated_at}


def compare_with_live(snapshot: Snapshot, discussion: Discussion) -> dict[str, Any]:
    """Diff from a snapshot to the discussion's current state."""
    return _build(
        _endpoint(snapshot),
        live_endpoint(discussion),
        snapshot.data.messages,
        discussion.messages,
        snapshot.data.context,
        context_of(discussion),
    )


def get_text_diff(text1: str, text2: str) -> dict[str, list[dict[str, Any]]]:
    """Line diff by walking both texts with two pointers.

    Positional, not LCS: on the first mismatch every remaining line of
    ``text2`` is reported as added before the leftover lines of ``text1`` are
    reported as removed, so a single inserted line shifts everything after it.
    """
    lines1 = text1.split("\n")
    lines2 = text2.split("\n")
    diff: dict[str, list[dict[str, Any]]] = {"added": [], "removed": [], "unchanged": []}

    i = j = 0
    while i < len(lines1) or j < len(lines2):
        if i < len(lines1) and j < len(lines2) and lines1[i] == lines2[j]:
            diff["unchanged"].append({"line": i + 1, "content": lines1[i]})
            i += 1
            j += 1
        elif j < len(lines2):
            diff["added"].append({"line": j + 1, "content": lines2[j]})
            j += 1
        else:
            diff["removed"].append({"line": i + 1, "content": lines1[i]})
            i += 1

    return diff


def _clip(text: str, width: int = 72) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


def format_diff(changes: dict[str, Any]) -> str:
    """Render a snapshot/live diff as plain text for the terminal."""
    lines = [changes["summary"]]
    message_changes = changes["messageChanges"]

    for message in message_changes["added"]:
        lines.append(f"  + [{message['role']}] {_clip(message['content'])}")
    for message in message_changes["removed"]:
        lines.append(f"  - [{message['role']}] {_clip(message['content'])}")
    for change in message_changes["modified"]:
        lines.append(f"  ~ [{change['role']}] {_clip(change['old']['content'])}")
        lines.append(f"    → {_clip(change['new']['content'])}")

    for name, change in changes["contextChanges"].items():
        if change["changed"]:
            lines.append(f"  {name}: {change['old']} → {change['new']}")

    return "\n".join(lines)
