from parley.lib import config, paths


def test_packaged_defaults(data_root):
    assert config.get("similarity.threshold") == 0.1
    assert config.get("similarity.limit") == 10
    assert config.get("snapshots.compress") is True
    assert config.get("restore.allow_cross_discussion") is False


def test_missing_key_default(data_root):
    assert config.get("nope.nothing", 42) == 42


def test_user_config_layers_over_defaults(data_root):
    config.config_file().write_text("similarity:\n  threshold: 0.5\n")
    config.clear_cache()

    assert config.get("similarity.threshold") == 0.5
    assert config.get("similarity.limit") == 10


def test_data_root_override(data_root, tmp_path):
    custom = tmp_path / "elsewhere"
    config.config_file().write_text(f"data_root: {custom}\n")
    config.clear_cache()

    assert paths.data_root() == custom
    assert paths.snapshots_dir() == custom / "snapshots"
    assert paths.restores_dir(tmp_path) == tmp_path / "restores"


def test_init_config_copies_defaults(data_root):
    config.init_config()
    assert config.config_file().exists()
    assert config.get("api.port") == 8000


def test_validate_record_id():
    assert paths.validate_record_id("snap-1") == (True, "")
    assert paths.validate_record_id("")[0] is False
    assert paths.validate_record_id("a/b")[0] is False
    assert paths.validate_record_id(".hidden")[0] is False
