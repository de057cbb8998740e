"""One-file-per-record JSON persistence.

Every record is written with a ``schemaVersion`` field through a temp file and
``os.replace`` so a reader never sees a half-written file.
"""

import gzip
import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from parley.errors import StorageError
from parley.lib import paths

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SUFFIXES = (".json", ".json.gz")


def _record_path(directory: Path, record_id: str, compress: bool) -> Path:
    ok, reason = paths.validate_record_id(record_id)
    if not ok:
        raise StorageError(reason)
    suffix = ".json.gz" if compress else ".json"
    return directory / f"{record_id}{suffix}"


def _encode(record: dict[str, Any]) -> bytes:
    payload = {"schemaVersion": SCHEMA_VERSION, **record}
    return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")


def _decode(path: Path) -> dict[str, Any]:
    raw = path.read_bytes()
    if path.name.endswith(".gz"):
        raw = gzip.decompress(raw)
    record = json.loads(raw.decode("utf-8"))
    if not isinstance(record, dict):
        raise ValueError(f"{path.name}: expected an object")
    version = record.pop("schemaVersion", SCHEMA_VERSION)
    if version > SCHEMA_VERSION:
        raise ValueError(f"{path.name}: unsupported schemaVersion {version}")
    return record


def write(directory: Path, record_id: str, record: dict[str, Any], compress: bool = False) -> Path:
    """Write ``record`` as ``{record_id}.json[.gz]`` in ``directory``."""
    path = _record_path(directory, record_id, compress)
    data = _encode(record)
    if compress:
        data = gzip.compress(data)

    tmp = path.with_name(f".{path.name}.tmp")
    try:
        directory.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise StorageError(f"Failed to write {path}: {e}") from e
    return path


def read(directory: Path, record_id: str) -> dict[str, Any] | None:
    """Read a record by id, trying both plain and gzip files. None if absent."""
    if not paths.validate_record_id(record_id)[0]:
        return None
    for compress in (False, True):
        path = _record_path(directory, record_id, compress)
        if not path.exists():
            continue
        try:
            return _decode(path)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e
    return None


def delete(directory: Path, record_id: str) -> bool:
    if not paths.validate_record_id(record_id)[0]:
        return False
    removed = False
    for compress in (False, True):
        path = _record_path(directory, record_id, compress)
        try:
            path.unlink()
            removed = True
        except FileNotFoundError:
            continue
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
    return removed


def scan(directory: Path) -> Iterator[dict[str, Any]]:
    """Yield every readable record in ``directory``; unreadable files are skipped."""
    if not directory.exists():
        return
    for path in sorted(directory.iterdir()):
        if path.name.startswith(".") or not path.name.endswith(SUFFIXES):
            continue
        try:
            yield _decode(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping unreadable record {path.name}: {e}")
