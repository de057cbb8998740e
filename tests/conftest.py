import pytest

from parley import services
from parley.lib import config, paths


@pytest.fixture
def data_root(monkeypatch, tmp_path):
    """Isolated ~/.parley per test.

    Provides:
    - Temporary .parley directory (config + data)
    - Fresh services container built over it
    - Config cache cleared on setup and teardown
    """
    dot_parley = tmp_path / ".parley"
    dot_parley.mkdir()
    monkeypatch.setattr(paths, "dot_parley", lambda: dot_parley)
    config.clear_cache()
    services._reset_for_testing()

    yield dot_parley / "data"

    services._reset_for_testing()
    config.clear_cache()


@pytest.fixture
def svc(data_root):
    return services.get()


@pytest.fixture
def store(svc):
    return svc.store


@pytest.fixture
def discussion(store):
    """Discussion with two messages, a and b."""
    d = store.create("微服务架构评估", participants=["coordinator", "technical"])
    store.add_message(d.id, "coordinator", "我们需要评估微服务架构的成本")
    store.add_message(d.id, "technical", "拆分服务会增加运维复杂度 @coordinator")
    return store.get(d.id)
