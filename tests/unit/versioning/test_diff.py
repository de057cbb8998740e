from parley.core.models import Message, Snapshot, StateContext, StateData
from parley.versioning import diff


def _msg(id, content, role="technical"):
    return Message(id=id, role=role, content=content, timestamp=0)


def _snapshot(id, version, messages, topic="t", status="active", rounds=0):
    return Snapshot(
        id=id,
        discussion_id="disc-1",
        version=version,
        timestamp="2026-01-01T00:00:00+00:00",
        description="",
        type="manual",
        data=StateData(
            messages=messages,
            context=StateContext(topic=topic, status=status, rounds=rounds),
        ),
    )


def test_compare_identical_lists_is_empty():
    """Contract: comparing a list with itself reports nothing."""
    messages = [_msg("msg-1", "a"), _msg("msg-2", "b")]
    changes = diff.compare_message_lists(messages, messages)
    assert changes == {
        "added": [],
        "removed": [],
        "modified": [],
        "stats": {"added": 0, "removed": 0, "modified": 0},
    }


def test_compare_classifies_by_id():
    old = [_msg("msg-1", "a"), _msg("msg-2", "b"), _msg("msg-3", "c")]
    new = [_msg("msg-1", "a"), _msg("msg-3", "c!"), _msg("msg-4", "d")]

    changes = diff.compare_message_lists(old, new)

    assert [m["id"] for m in changes["added"]] == ["msg-4"]
    assert [m["id"] for m in changes["removed"]] == ["msg-2"]
    assert len(changes["modified"]) == 1
    modified = changes["modified"][0]
    assert modified["id"] == "msg-3"
    assert modified["old"]["content"] == "c"
    assert modified["new"]["content"] == "c!"
    assert changes["stats"] == {"added": 1, "removed": 1, "modified": 1}


def test_compare_ignores_order():
    """Reordering alone is not a change."""
    a, b = _msg("msg-1", "a"), _msg("msg-2", "b")
    changes = diff.compare_message_lists([a, b], [b, a])
    assert changes["stats"] == {"added": 0, "removed": 0, "modified": 0}


def test_compare_snapshots_reports_context_and_summary():
    s1 = _snapshot("snap-1", 1, [_msg("msg-1", "a")], topic="old", rounds=1)
    s2 = _snapshot("snap-2", 2, [_msg("msg-1", "a"), _msg("msg-2", "b")], topic="new", rounds=1)

    changes = diff.compare_snapshots(s1, s2)

    assert changes["from"] == {"id": "snap-1", "version": 1, "timestamp": s1.timestamp}
    assert changes["to"]["version"] == 2
    assert changes["contextChanges"]["topic"] == {"old": "old", "new": "new", "changed": True}
    assert changes["contextChanges"]["status"]["changed"] is False
    assert changes["contextChanges"]["rounds"]["changed"] is False
    assert changes["summary"] == "新增 1 条消息，主题已更改"


def test_summary_no_changes():
    s1 = _snapshot("snap-1", 1, [_msg("msg-1", "a")])
    assert diff.compare_snapshots(s1, s1)["summary"] == "无变化"


def test_summary_lists_every_category():
    s1 = _snapshot("snap-1", 1, [_msg("msg-1", "a"), _msg("msg-2", "b")], status="active")
    s2 = _snapshot(
        "snap-2", 2, [_msg("msg-1", "A"), _msg("msg-3", "c")], status="ended", rounds=2
    )
    summary = diff.compare_snapshots(s1, s2)["summary"]
    assert summary == "新增 1 条消息，删除 1 条消息，修改 1 条消息，状态已更改，轮次已更改"


def test_text_diff_identical():
    result = diff.get_text_diff("a\nb", "a\nb")
    assert result["added"] == []
    assert result["removed"] == []
    assert result["unchanged"] == [{"line": 1, "content": "a"}, {"line": 2, "content": "b"}]


def test_text_diff_is_positional():
    """A changed middle line reports every following line as removed and re-added."""
    result = diff.get_text_diff("a\nb\nc", "a\nB\nc")
    assert result["unchanged"] == [{"line": 1, "content": "a"}]
    assert result["added"] == [{"line": 2, "content": "B"}, {"line": 3, "content": "c"}]
    assert result["removed"] == [{"line": 2, "content": "b"}, {"line": 3, "content": "c"}]


def test_text_diff_deleted_line_over_reports():
    result = diff.get_text_diff("a\nb\nc", "a\nc")
    assert [e["content"] for e in result["added"]] == ["c"]
    assert [e["content"] for e in result["removed"]] == ["b", "c"]


def test_format_diff_renders_changes():
    s1 = _snapshot("snap-1", 1, [_msg("msg-1", "a")], topic="old")
    s2 = _snapshot("snap-2", 2, [_msg("msg-1", "a2"), _msg("msg-2", "b")], topic="new")
    text = diff.format_diff(diff.compare_snapshots(s1, s2))
    lines = text.splitlines()
    assert lines[0] == "新增 1 条消息，修改 1 条消息，主题已更改"
    assert "  + [technical] b" in lines
    assert "  ~ [technical] a" in lines
    assert "  topic: old → new" in lines
