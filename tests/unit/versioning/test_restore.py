from dataclasses import replace

import pytest

from parley.errors import InvalidArgumentError, NotFoundError


def test_replace_restores_snapshot_messages(svc, store, discussion):
    """Contract: replace restore right after a snapshot yields the snapshot's messages."""
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "第三条消息")

    result = svc.restores.restore(discussion.id, snapshot.id, mode="replace")

    restored = store.get(discussion.id)
    assert [(m.id, m.content) for m in restored.messages] == [
        (m.id, m.content) for m in snapshot.data.messages
    ]
    assert result["discussionId"] == discussion.id
    assert result["snapshotId"] == snapshot.id
    assert result["mode"] == "replace"
    assert result["changes"]["removed"] == 1
    assert result["changes"]["added"] == 0
    assert result["restoreId"].startswith("restore-")


def test_replace_restores_context(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.update(discussion.id, topic="另一个主题", status="ended", rounds=3)

    result = svc.restores.restore(discussion.id, snapshot.id)

    restored = store.get(discussion.id)
    assert restored.topic == "微服务架构评估"
    assert restored.status == "active"
    assert restored.rounds == 0
    assert result["changes"]["contextChanged"] == ["topic", "status", "rounds"]


def test_full_is_replace(svc, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    assert svc.restores.restore(discussion.id, snapshot.id, mode="full")["mode"] == "replace"


def test_restored_messages_are_copies(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    svc.restores.restore(discussion.id, snapshot.id)

    restored = store.get(discussion.id)
    restored.messages[0].mentions.append("someone")
    assert "someone" not in svc.snapshots.get_snapshot(snapshot.id).data.messages[0].mentions


def test_merge_appends_missing_messages(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.save(replace(discussion, messages=[discussion.messages[1]]))

    result = svc.restores.restore(discussion.id, snapshot.id, mode="merge")

    assert [m.id for m in store.get(discussion.id).messages] == ["msg-2", "msg-1"]
    assert result["changes"]["added"] == 1


def test_merge_keeps_existing_content(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    edited = replace(discussion.messages[0], content="改过的内容")
    store.save(replace(discussion, messages=[edited, discussion.messages[1]]))

    result = svc.restores.restore(discussion.id, snapshot.id, mode="merge")

    assert store.get(discussion.id).messages[0].content == "改过的内容"
    assert result["changes"]["added"] == 0


def test_merge_context_only_when_requested(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.update(discussion.id, topic="新主题")

    svc.restores.restore(discussion.id, snapshot.id, mode="merge")
    assert store.get(discussion.id).topic == "新主题"

    svc.restores.restore(discussion.id, snapshot.id, mode="merge", include_context=True)
    assert store.get(discussion.id).topic == "微服务架构评估"


def test_unknown_mode_rejected(svc, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    with pytest.raises(InvalidArgumentError):
        svc.restores.restore(discussion.id, snapshot.id, mode="overwrite")


def test_missing_snapshot(svc, discussion):
    with pytest.raises(NotFoundError):
        svc.restores.restore(discussion.id, "snap-missing")


def test_missing_discussion(svc, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    with pytest.raises(NotFoundError):
        svc.restores.restore("disc-missing", snapshot.id, allow_cross=True)


def test_cross_discussion_restore_rejected_by_default(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    other = store.create("午餐吃什么")

    with pytest.raises(NotFoundError):
        svc.restores.restore(other.id, snapshot.id)
    assert store.get(other.id).messages == []

    svc.restores.restore(other.id, snapshot.id, allow_cross=True)
    assert len(store.get(other.id).messages) == 2


def test_preview_does_not_apply(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "第三条消息")

    preview = svc.restores.preview_restore(discussion.id, snapshot.id)

    assert preview["current"]["messageCount"] == 3
    assert preview["snapshot"]["messageCount"] == 2
    assert preview["current"]["lastMessage"]["content"] == "第三条消息"
    assert preview["changes"] == {
        "messageDelta": -1,
        "topicChanged": False,
        "statusChanged": False,
        "willLoseMessages": True,
    }
    assert preview["diff"] == {"added": 0, "removed": 1, "modified": 0}
    assert len(store.get(discussion.id).messages) == 3


def test_history_records_each_restore(svc, discussion):
    s1 = svc.snapshots.create_snapshot(discussion.id)
    svc.restores.restore(discussion.id, s1.id)
    svc.restores.restore(discussion.id, s1.id, mode="merge")

    history = svc.restores.get_restore_history(discussion.id)

    assert [r.mode for r in history] == ["replace", "merge"]
    assert history[0].snapshot_version == 1
    assert history[0].before["messageCount"] == 2
    assert history[0].previous["id"] == discussion.id


def test_undo_restore(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "第三条消息")
    store.update(discussion.id, topic="后来的主题")
    result = svc.restores.restore(discussion.id, snapshot.id)

    undone = svc.restores.undo_restore(discussion.id, result["restoreId"])

    assert undone == {"success": True, "restoreId": result["restoreId"], "messageCount": 3}
    current = store.get(discussion.id)
    assert [m.content for m in current.messages][-1] == "第三条消息"
    assert current.topic == "后来的主题"


def test_undo_rejects_other_discussion(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    result = svc.restores.restore(discussion.id, snapshot.id)
    other = store.create("午餐吃什么")

    with pytest.raises(NotFoundError):
        svc.restores.undo_restore(other.id, result["restoreId"])
    with pytest.raises(NotFoundError):
        svc.restores.undo_restore(discussion.id, "restore-missing")


def test_undo_keeps_message_sequence(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "第三条消息")
    result = svc.restores.restore(discussion.id, snapshot.id)
    assert store.add_message(discussion.id, "testing", "回滚后").id == "msg-4"

    svc.restores.undo_restore(discussion.id, result["restoreId"])

    assert [m.id for m in store.get(discussion.id).messages] == ["msg-1", "msg-2", "msg-3"]
    assert store.add_message(discussion.id, "testing", "撤销后").id == "msg-5"
