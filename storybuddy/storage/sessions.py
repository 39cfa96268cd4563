"""Chat sessions per publication: one detail file per session plus an index.

The index (sessions/index.json) holds a summary of every session with an
empty message list so listing never opens detail files. Every save rewrites
both files with the same lastUpdated stamp. There is no locking: concurrent
writers to the same publication can lose updates (last write wins).
"""

import logging
from pathlib import Path
from typing import Any

from .core import (
    delete_file,
    new_id,
    now_iso,
    read_json,
    validate_id,
    write_json,
)
from .publications import publication_dir, publication_ids

logger = logging.getLogger(__name__)

MODES = ("brainstorming", "writing")
DEFAULT_MODEL = "anthropic/claude-3.5-sonnet:beta"


def _sessions_dir(publication_id: str) -> Path:
    return publication_dir(publication_id) / "sessions"


def _session_path(publication_id: str, session_id: str) -> Path:
    return _sessions_dir(publication_id) / f"{validate_id(session_id)}.json"


def _load_index(publication_id: str) -> dict[str, Any]:
    index = read_json(_sessions_dir(publication_id) / "index.json")
    if index is None:
        return {"sessions": [], "lastUpdated": now_iso()}
    return index


def _save_index(publication_id: str, index: dict[str, Any]) -> None:
    index["lastUpdated"] = now_iso()
    write_json(_sessions_dir(publication_id) / "index.json", index)


def _summary(session: dict[str, Any]) -> dict[str, Any]:
    return {**session, "messages": []}


def normalize_message(
    message: dict[str, Any], now: str | None = None, used_ids: set[str] | None = None
) -> dict[str, Any]:
    """Fill in id and timestamp on a message that lacks them."""
    used = used_ids if used_ids is not None else set()
    msg = dict(message)
    if not msg.get("id"):
        msg["id"] = new_id(lambda candidate: candidate in used)
    used.add(str(msg["id"]))
    if not msg.get("timestamp"):
        msg["timestamp"] = now or now_iso()
    return msg


def save_session(
    publication_id: str, session: dict[str, Any], stamp: str | None = None
) -> dict[str, Any]:
    """Persist the detail file and upsert its summary into the index.

    Recomputes messageCount and stamps lastUpdated (with `stamp` when given,
    otherwise the current time); the index entry gets the same stamp as the
    detail record.
    """
    session["lastUpdated"] = stamp or now_iso()
    messages = session.get("messages", [])
    used = {str(m["id"]) for m in messages if m.get("id")}
    session["messages"] = [
        normalize_message(m, session["lastUpdated"], used) for m in messages
    ]
    session["messageCount"] = len(session["messages"])
    write_json(_session_path(publication_id, session["id"]), session)

    index = _load_index(publication_id)
    summary = _summary(session)
    for i, existing in enumerate(index["sessions"]):
        if existing["id"] == session["id"]:
            index["sessions"][i] = summary
            break
    else:
        index["sessions"].append(summary)
    _save_index(publication_id, index)
    return session


def list_sessions(publication_id: str, mode: str | None = None) -> list[dict[str, Any]]:
    """Session summaries, newest first, optionally restricted to one mode."""
    sessions = list(_load_index(publication_id)["sessions"])
    if mode in MODES:
        sessions = [s for s in sessions if s.get("mode") == mode]
    sessions.sort(key=lambda s: s.get("lastUpdated", ""), reverse=True)
    return sessions


def find_session(session_id: str) -> str | None:
    """Publication id owning session_id, scanning publications in index order."""
    validate_id(session_id)
    for publication_id in publication_ids():
        if _session_path(publication_id, session_id).is_file():
            return publication_id
    return None


def get_session(session_id: str, publication_id: str | None = None) -> dict[str, Any] | None:
    if publication_id is None:
        publication_id = find_session(session_id)
        if publication_id is None:
            return None
    return read_json(_session_path(publication_id, session_id))


def create_session(
    publication_id: str,
    name: str,
    mode: str,
    messages: list[dict[str, Any]] | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    if not name:
        raise ValueError("Session name is required")
    if mode not in MODES:
        raise ValueError(f"Invalid mode: {mode}")

    directory = _sessions_dir(publication_id)
    now = now_iso()
    session = {
        "id": new_id(lambda candidate: (directory / f"{candidate}.json").exists()),
        "name": name,
        "mode": mode,
        "model": model or DEFAULT_MODEL,
        "messages": list(messages or []),
        "createdAt": now,
        "lastUpdated": now,
        "messageCount": 0,
    }
    return save_session(publication_id, session)


def update_session(
    publication_id: str, session_id: str, fields: dict[str, Any]
) -> dict[str, Any] | None:
    """Apply name/mode/messages/model; omitted fields keep their values.

    messages is always a full replacement list, never a delta.
    """
    session = get_session(session_id, publication_id)
    if session is None:
        return None
    mode = fields.get("mode")
    if mode and mode not in MODES:
        raise ValueError(f"Invalid mode: {mode}")

    if fields.get("name"):
        session["name"] = fields["name"]
    if mode:
        session["mode"] = mode
    if fields.get("messages") is not None:
        session["messages"] = list(fields["messages"])
    if fields.get("model") is not None:
        session["model"] = fields["model"]
    return save_session(publication_id, session)


def append_messages(
    publication_id: str, session_id: str, messages: list[dict[str, Any]]
) -> dict[str, Any] | None:
    """Append messages to a transcript and persist it in one save."""
    session = get_session(session_id, publication_id)
    if session is None:
        return None
    session["messages"] = session.get("messages", []) + list(messages)
    return save_session(publication_id, session)


def rename_session(
    session_id: str, name: str, publication_id: str | None = None
) -> dict[str, Any] | None:
    """Change only name and lastUpdated, on both the detail file and its index entry."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("A valid name is required")
    if publication_id is None:
        publication_id = find_session(session_id)
        if publication_id is None:
            return None
    session = get_session(session_id, publication_id)
    if session is None:
        return None

    session["name"] = name.strip()
    session["lastUpdated"] = now_iso()
    write_json(_session_path(publication_id, session_id), session)

    index = _load_index(publication_id)
    for entry in index["sessions"]:
        if entry["id"] == session_id:
            entry["name"] = session["name"]
            entry["lastUpdated"] = session["lastUpdated"]
            _save_index(publication_id, index)
            break
    return session


def delete_session(session_id: str, publication_id: str | None = None) -> bool:
    """Remove the detail file (if still there) and the index entry.

    Returns False only when neither the detail file nor an index entry exists.
    """
    validate_id(session_id)
    if publication_id is None:
        publication_id = find_session(session_id)
    if publication_id is None:
        for candidate in publication_ids():
            if any(s["id"] == session_id for s in _load_index(candidate)["sessions"]):
                publication_id = candidate
                break
        else:
            return False

    removed_file = delete_file(_session_path(publication_id, session_id))
    index = _load_index(publication_id)
    remaining = [s for s in index["sessions"] if s["id"] != session_id]
    removed_entry = len(remaining) != len(index["sessions"])
    if removed_entry:
        index["sessions"] = remaining
        _save_index(publication_id, index)
    if removed_file or removed_entry:
        logger.info(f"Deleted session {session_id} from publication {publication_id}")
    return removed_file or removed_entry

