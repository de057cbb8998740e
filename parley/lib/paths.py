import os
from pathlib import Path


def dot_parley() -> Path:
    override = os.environ.get("PARLEY_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".parley"


def package_root() -> Path:
    return Path(__file__).resolve().parent.parent


def data_root() -> Path:
    from parley.lib import config

    configured = config.load_config().get("data_root")
    if configured:
        return Path(configured).expanduser()
    return dot_parley() / "data"


def discussions_dir(root: Path | None = None) -> Path:
    return (root or data_root()) / "discussions"


def snapshots_dir(root: Path | None = None) -> Path:
    return (root or data_root()) / "snapshots"


def branches_dir(root: Path | None = None) -> Path:
    return (root or data_root()) / "branches"


def restores_dir(root: Path | None = None) -> Path:
    return (root or data_root()) / "restores"


def validate_record_id(record_id: str) -> tuple[bool, str]:
    if not record_id:
        return False, "Id cannot be empty"
    if "/" in record_id or "\\" in record_id or record_id.startswith("."):
        return False, f"Invalid id '{record_id}'"
    return True, ""
