"""One-shot migration of the single-history-per-mode format into sessions.

Legacy input (read only):
  chat-history/brainstorming.json   {mode, messages, lastUpdated}
  chat-history/writing.json

Migrated sessions are written into a publication's session store. The legacy
flat sessions/index.json is written as the record of the run; its presence
marks the migration as done, so check_status() stays idempotent even when the
legacy files are left in place.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .core import data_dir, now_iso, read_json, write_json
from .publications import (
    create_publication,
    get_active_publication_id,
    get_publication,
)
from .sessions import DEFAULT_MODEL, MODES, save_session

logger = logging.getLogger(__name__)

MIGRATED_SESSION_NAMES = {
    "brainstorming": "Brainstorming Session (migrated)",
    "writing": "Writing Session (migrated)",
}

IMPORT_PUBLICATION_TITLE = "Imported Sessions"
IMPORT_PUBLICATION_DESCRIPTION = "Chat histories migrated from the single-history format"


def _history_path(mode: str) -> Path:
    return data_dir() / "chat-history" / f"{mode}.json"


def _legacy_index_path() -> Path:
    return data_dir() / "sessions" / "index.json"


def _normalize_timestamp(value: Any, fallback: str) -> str:
    if not value:
        return fallback
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()


def check_status() -> dict[str, bool]:
    old_found = any(_history_path(mode).is_file() for mode in MODES)
    sessions_exist = _legacy_index_path().is_file()
    return {
        "needsMigration": old_found and not sessions_exist,
        "oldHistoriesFound": old_found,
        "sessionsExist": sessions_exist,
    }


def _target_publication(publication_id: str | None) -> str:
    if publication_id:
        if get_publication(publication_id) is None:
            raise LookupError(f"Publication {publication_id} not found")
        return publication_id
    active = get_active_publication_id()
    if active:
        return active
    publication = create_publication(IMPORT_PUBLICATION_TITLE, IMPORT_PUBLICATION_DESCRIPTION)
    return publication["id"]


def _migrate_mode(mode: str, offset: int, base_ms: int, now: str) -> dict[str, Any] | None:
    history = read_json(_history_path(mode))
    if not history or not history.get("messages"):
        return None
    stamp = history.get("lastUpdated") or now
    return {
        "id": f"migrated-{mode}-{base_ms + offset}",
        "name": MIGRATED_SESSION_NAMES[mode],
        "mode": mode,
        "model": DEFAULT_MODEL,
        "messages": [
            {**msg, "timestamp": _normalize_timestamp(msg.get("timestamp"), now)}
            for msg in history["messages"]
        ],
        "createdAt": stamp,
        "lastUpdated": stamp,
        "messageCount": len(history["messages"]),
    }


def run(publication_id: str | None = None) -> dict[str, Any]:
    """Convert each legacy history with messages into a session.

    Modes without a file or with an empty message list are skipped. Raises
    LookupError if an explicit publication_id does not exist.
    """
    status = check_status()
    if not status["oldHistoriesFound"]:
        return {"migratedSessions": 0, "sessions": [], "publicationId": None}

    now = now_iso()
    base_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
    candidates = [
        _migrate_mode(mode, offset, base_ms, now) for offset, mode in enumerate(MODES)
    ]
    candidates = [c for c in candidates if c is not None]

    target = _target_publication(publication_id) if candidates else publication_id
    summaries = []
    for session in candidates:
        saved = save_session(target, session, stamp=session["lastUpdated"])
        summaries.append({**saved, "messages": []})
        logger.info(
            f"Migrated {saved['messageCount']} {saved['mode']} messages into session {saved['id']}"
        )

    write_json(_legacy_index_path(), {
        "sessions": summaries,
        "publicationId": target,
        "lastUpdated": now_iso(),
    })
    return {
        "migratedSessions": len(summaries),
        "sessions": summaries,
        "publicationId": target,
    }
