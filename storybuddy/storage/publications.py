"""Publication CRUD, directory skeleton provisioning, and the active pointer."""

import logging
import shutil
from pathlib import Path
from typing import Any

from .core import (
    list_names,
    new_id,
    now_iso,
    publications_dir,
    read_json,
    resolve,
    validate_id,
    write_json,
)

logger = logging.getLogger(__name__)


def _index_path() -> Path:
    return publications_dir() / "index.json"


def publication_dir(publication_id: str) -> Path:
    return resolve("publications", validate_id(publication_id))


def _load_index() -> dict[str, Any]:
    """Read the publications index, writing empty defaults on first access."""
    path = _index_path()
    index = read_json(path)
    if index is None:
        index = {
            "publications": [],
            "activePublicationId": None,
            "lastUpdated": now_iso(),
        }
        write_json(path, index)
    return index


def _save_index(index: dict[str, Any]) -> None:
    index["lastUpdated"] = now_iso()
    write_json(_index_path(), index)


def _with_stats(publication: dict[str, Any]) -> dict[str, Any]:
    """Return a copy with contextCount/sessionsCount recomputed from disk."""
    base = publication_dir(publication["id"])
    sessions_index = read_json(base / "sessions" / "index.json", {"sessions": []})
    return {
        **publication,
        "contextCount": len(list_names(base / "context", ".md")),
        "sessionsCount": len(sessions_index.get("sessions", [])),
    }


def publication_ids() -> list[str]:
    """Ids in index order; this is the scan order for global lookups."""
    return [p["id"] for p in _load_index()["publications"]]


def _create_structure(publication_id: str, now: str) -> None:
    base = publication_dir(publication_id)
    (base / "context").mkdir(parents=True, exist_ok=True)
    write_json(base / "metadata.json", {
        "id": publication_id,
        "createdAt": now,
        "updatedAt": now,
    })
    write_json(base / "sessions" / "index.json", {"sessions": [], "lastUpdated": now})
    write_json(base / "settings" / "system-prompts.json", {
        "systemPrompts": {"brainstorming": "", "writing": ""},
        "lastUpdated": now,
    })


def list_publications() -> dict[str, Any]:
    index = _load_index()
    return {
        "publications": [_with_stats(p) for p in index["publications"]],
        "activePublicationId": index.get("activePublicationId"),
    }


def get_publication(publication_id: str) -> dict[str, Any] | None:
    for pub in _load_index()["publications"]:
        if pub["id"] == publication_id:
            return _with_stats(pub)
    return None


def get_active_publication_id() -> str | None:
    return _load_index().get("activePublicationId")


def create_publication(
    title: str, description: str, genre: str | None = None
) -> dict[str, Any]:
    """Create a publication and its directory skeleton.

    The first publication ever created becomes the active one.
    """
    if not title or not description:
        raise ValueError("Title and description are required")

    index = _load_index()
    known = {p["id"] for p in index["publications"]}
    publication_id = new_id(
        lambda candidate: candidate in known or (publications_dir() / candidate).exists()
    )
    now = now_iso()
    publication = {
        "id": publication_id,
        "title": title,
        "description": description,
        "genre": genre or "Unknown",
        "createdAt": now,
        "updatedAt": now,
        "sessionsCount": 0,
        "contextCount": 0,
    }
    _create_structure(publication_id, now)

    index["publications"].append(publication)
    if len(index["publications"]) == 1:
        index["activePublicationId"] = publication_id
    _save_index(index)
    logger.info(f"Created publication {publication_id} ({title!r})")
    return publication


def update_publication(publication_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Merge title/description/genre, bump updatedAt, optionally set active."""
    index = _load_index()
    publication = next((p for p in index["publications"] if p["id"] == publication_id), None)
    if publication is None:
        return None

    for key in ("title", "description", "genre"):
        if fields.get(key) is not None:
            publication[key] = fields[key]
    publication["updatedAt"] = now_iso()
    if fields.get("setActive") is True:
        index["activePublicationId"] = publication_id
    _save_index(index)

    metadata_path = publication_dir(publication_id) / "metadata.json"
    metadata = read_json(metadata_path, {"id": publication_id})
    metadata["updatedAt"] = publication["updatedAt"]
    write_json(metadata_path, metadata)
    return _with_stats(publication)


def delete_publication(publication_id: str) -> bool:
    """Remove the publication subtree and index entry, re-pointing active if needed."""
    index = _load_index()
    remaining = [p for p in index["publications"] if p["id"] != publication_id]
    if len(remaining) == len(index["publications"]):
        return False

    base = publication_dir(publication_id)
    if base.is_dir():
        shutil.rmtree(base)

    index["publications"] = remaining
    if index.get("activePublicationId") == publication_id:
        index["activePublicationId"] = remaining[0]["id"] if remaining else None
    _save_index(index)
    logger.info(f"Deleted publication {publication_id}")
    return True
