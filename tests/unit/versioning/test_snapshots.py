import gzip
import json

import pytest

from parley import services
from parley.errors import InvalidArgumentError, NotFoundError
from parley.versioning import diff


def test_create_snapshot_copies_state(svc, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id, description="before", tags=["x"])

    assert snapshot.discussion_id == discussion.id
    assert snapshot.version == 1
    assert snapshot.description == "before"
    assert snapshot.tags == ["x"]
    assert snapshot.type == "manual"
    assert [m.id for m in snapshot.data.messages] == [m.id for m in discussion.messages]
    assert snapshot.data.context.topic == discussion.topic
    assert snapshot.data.context.participants == ["coordinator", "technical"]


def test_default_description(svc, discussion):
    assert svc.snapshots.create_snapshot(discussion.id).description == "手动快照"


def test_snapshot_isolated_from_later_changes(svc, store, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "新的消息")
    store.update(discussion.id, topic="changed")

    reloaded = svc.snapshots.get_snapshot(snapshot.id)
    assert len(reloaded.data.messages) == 2
    assert reloaded.data.context.topic == "微服务架构评估"
    assert snapshot.data.messages[0] is not discussion.messages[0]


def test_versions_increase(svc, discussion):
    versions = [svc.snapshots.create_snapshot(discussion.id).version for _ in range(3)]
    assert versions == [1, 2, 3]


def test_version_after_deleting_middle(svc, discussion):
    s1 = svc.snapshots.create_snapshot(discussion.id)
    s2 = svc.snapshots.create_snapshot(discussion.id)
    s3 = svc.snapshots.create_snapshot(discussion.id)

    assert svc.snapshots.delete_snapshot(s2.id) is True

    s4 = svc.snapshots.create_snapshot(discussion.id)
    assert s4.version == 4
    assert [s.id for s in svc.snapshots.get_snapshots(discussion.id)] == [s1.id, s3.id, s4.id]


def test_versions_are_per_discussion(svc, store, discussion):
    other = store.create("午餐吃什么")
    svc.snapshots.create_snapshot(discussion.id)
    svc.snapshots.create_snapshot(discussion.id)
    assert svc.snapshots.create_snapshot(other.id).version == 1


def test_create_snapshot_missing_discussion(svc):
    with pytest.raises(NotFoundError):
        svc.snapshots.create_snapshot("disc-missing")


def test_create_snapshot_rejects_unknown_type(svc, discussion):
    with pytest.raises(InvalidArgumentError):
        svc.snapshots.create_snapshot(discussion.id, type="weird")


def test_delete_is_idempotent(svc, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)
    assert svc.snapshots.delete_snapshot(snapshot.id) is True
    assert svc.snapshots.delete_snapshot(snapshot.id) is False
    assert svc.snapshots.delete_snapshot("snap-never-existed") is False
    assert svc.snapshots.get_snapshot(snapshot.id) is None


def test_snapshots_persist_gzipped(svc, data_root, discussion):
    snapshot = svc.snapshots.create_snapshot(discussion.id)

    path = data_root / "snapshots" / f"{snapshot.id}.json.gz"
    assert path.exists()
    record = json.loads(gzip.decompress(path.read_bytes()))
    assert record["schemaVersion"] == 1
    assert record["discussionId"] == discussion.id
    assert record["messageCount"] == 2


def test_snapshots_reload_from_disk(svc, discussion):
    s1 = svc.snapshots.create_snapshot(discussion.id)
    s2 = svc.snapshots.create_snapshot(discussion.id)

    services._reset_for_testing()
    fresh = services.get()

    assert [s.id for s in fresh.snapshots.get_snapshots(discussion.id)] == [s1.id, s2.id]
    assert fresh.snapshots.get_snapshot(s2.id).version == 2
    assert fresh.snapshots.next_version(discussion.id) == 3


def test_auto_snapshot(svc, discussion):
    snapshot = svc.snapshots.auto_snapshot(discussion.id, "consensus")
    assert snapshot.type == "auto"
    assert snapshot.tags == ["consensus"]
    assert snapshot.description == "达成共识"

    assert svc.snapshots.auto_snapshot(discussion.id, "other").description == "自动快照"


def test_diff_after_restore_sees_new_message_as_new(svc, store, discussion):
    """A message added after a restore never reuses the id of one it dropped."""
    s1 = svc.snapshots.create_snapshot(discussion.id)
    store.add_message(discussion.id, "testing", "被回滚的消息")
    s2 = svc.snapshots.create_snapshot(discussion.id)
    svc.restores.restore(discussion.id, s1.id)
    store.add_message(discussion.id, "testing", "回滚后的新消息")
    s3 = svc.snapshots.create_snapshot(discussion.id)

    changes = diff.compare_snapshots(s2, s3)["messageChanges"]

    assert changes["stats"] == {"added": 1, "removed": 1, "modified": 0}
    assert changes["added"][0]["content"] == "回滚后的新消息"
    assert changes["removed"][0]["content"] == "被回滚的消息"


def test_unknown_discussion_not_cached(svc):
    assert svc.snapshots.get_snapshots("disc-missing") == []
    assert "disc-missing" not in svc.snapshots._cache

    with pytest.raises(NotFoundError):
        svc.snapshots.create_snapshot("disc-missing")
    assert len(svc.store.locks) == 0
