"""Storage initialization, path helpers, and blob read/write primitives."""

import json
import logging
import re
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_data_dir: Path | None = None

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


class StorageError(RuntimeError):
    """A stored file exists but cannot be decoded."""


def init_storage(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def publications_dir() -> Path:
    return data_dir() / "publications"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_id(value: str) -> str:
    """Reject ids that are not a single safe path component.

    "1718000000000" and "migrated-writing-1718000000001" pass;
    "../etc" or "a/b" raise ValueError.
    """
    if not value or not isinstance(value, str):
        raise ValueError("Id cannot be empty")
    if len(value) > 100:
        raise ValueError("Invalid id: too long (max 100 characters)")
    if not _ID_RE.match(value):
        raise ValueError(f"Invalid id: {value!r}")
    return value


def resolve(*parts: str) -> Path:
    """Join parts below the data dir, refusing anything that escapes it."""
    root = data_dir().resolve()
    path = root.joinpath(*parts).resolve()
    if path != root and root not in path.parents:
        raise ValueError("Path escapes the data directory")
    return path


def new_id(taken: Callable[[str], bool] | None = None) -> str:
    """Allocate an id from the current epoch milliseconds.

    Bumps by one while `taken(id)` is true so two creations within the same
    millisecond never collide.
    """
    value = int(time.time() * 1000)
    while taken is not None and taken(str(value)):
        value += 1
    return str(value)


# ── Blob primitives ──────────────────────────────────────


def read_json(path: Path, default: Any = None) -> Any:
    """Load JSON from path. Returns default if the file is missing.

    Corrupt JSON is not repaired: it raises StorageError.
    """
    if not path.is_file():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from {path}: {e}")
        raise StorageError(f"Corrupt JSON in {path.name}") from e


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def read_text(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def list_names(directory: Path, suffix: str = "") -> list[str]:
    """File names in directory ending with suffix. [] if the directory is absent."""
    if not directory.is_dir():
        return []
    return sorted(
        p.name for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix)
    )


def delete_file(path: Path) -> bool:
    """Remove a file. Returns False if it was already gone."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def mtime(path: Path) -> str:
    """File modification time as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).isoformat()
