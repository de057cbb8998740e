import shutil
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from . import paths


def get_default_config_path() -> Path:
    return paths.package_root() / "config.yaml"


def config_file() -> Path:
    """Return config file path in .parley/"""
    return paths.dot_parley() / "config.yaml"


def clear_cache():
    load_config.cache_clear()
    _load_defaults.cache_clear()


@lru_cache(maxsize=1)
def _load_defaults() -> dict:
    path = get_default_config_path()
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load .parley/config.yaml layered over the packaged defaults."""
    defaults = _load_defaults()
    path = config_file()
    if not path.exists():
        return defaults
    with open(path) as f:
        return _merge(defaults, yaml.safe_load(f) or {})


def get(dotted_key: str, default: Any = None) -> Any:
    """Look up a nested key such as ``similarity.threshold``."""
    node: Any = load_config()
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def init_config() -> None:
    """Initialize .parley/config.yaml from defaults if missing."""
    target = config_file()
    if target.exists():
        return

    target.parent.mkdir(parents=True, exist_ok=True)

    default_config_path = get_default_config_path()
    if not default_config_path.exists():
        raise FileNotFoundError(f"Default config not found at {default_config_path}")

    shutil.copy(default_config_path, target)
    clear_cache()
