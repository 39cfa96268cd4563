"""Context documents (lore entries and chapters) stored as Markdown per publication."""

import logging
from pathlib import Path
from typing import Any

import yaml

from storybuddy import frontmatter

from .core import (
    StorageError,
    delete_file,
    list_names,
    mtime,
    new_id,
    now_iso,
    read_text,
    validate_id,
    write_text,
)
from .publications import publication_dir, publication_ids

logger = logging.getLogger(__name__)

CONTEXT_TYPES = (
    "character",
    "place",
    "location",
    "object",
    "story",
    "world",
    "rule",
    "magic",
    "technology",
    "culture",
    "history",
    "chapter",
    "other",
)


def _context_dir(publication_id: str) -> Path:
    return publication_dir(publication_id) / "context"


def _context_path(publication_id: str, context_id: str) -> Path:
    return _context_dir(publication_id) / f"{validate_id(context_id)}.md"


def _load(path: Path) -> dict[str, Any] | None:
    text = read_text(path)
    if text is None:
        return None
    try:
        metadata, body = frontmatter.decode(text)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse front matter from {path}: {e}")
        raise StorageError(f"Corrupt front matter in {path.name}") from e
    return {
        **metadata,
        "id": path.stem,
        "name": metadata.get("name") or path.stem,
        "type": metadata.get("type") or "other",
        "content": body,
        "lastModified": mtime(path),
    }


def list_context(publication_id: str) -> list[dict[str, Any]]:
    """All context documents of a publication, in directory listing order."""
    directory = _context_dir(publication_id)
    docs = []
    for name in list_names(directory, ".md"):
        doc = _load(directory / name)
        if doc is not None:
            docs.append(doc)
    return docs


def get_context(publication_id: str, context_id: str) -> dict[str, Any] | None:
    return _load(_context_path(publication_id, context_id))


def find_context(context_id: str) -> tuple[str, dict[str, Any]] | None:
    """Look a document up by id alone, scanning every publication in index order."""
    validate_id(context_id)
    for publication_id in publication_ids():
        doc = get_context(publication_id, context_id)
        if doc is not None:
            return publication_id, doc
    return None


def create_context(
    publication_id: str, name: str, doc_type: str, content: str = ""
) -> dict[str, Any]:
    if not name or not doc_type:
        raise ValueError("Name and type are required")
    if doc_type not in CONTEXT_TYPES:
        raise ValueError(f"Unknown context type: {doc_type}")

    directory = _context_dir(publication_id)
    context_id = new_id(lambda candidate: (directory / f"{candidate}.md").exists())
    now = now_iso()
    metadata = {
        "name": name,
        "type": doc_type,
        "createdAt": now,
        "updatedAt": now,
    }
    path = directory / f"{context_id}.md"
    write_text(path, frontmatter.encode(content or "", metadata))
    return _load(path)


def update_context(
    publication_id: str, context_id: str, fields: dict[str, Any]
) -> dict[str, Any] | None:
    """Merge fields into the document's metadata; "content" replaces the body."""
    path = _context_path(publication_id, context_id)
    text = read_text(path)
    if text is None:
        return None
    if "type" in fields and fields["type"] not in CONTEXT_TYPES:
        raise ValueError(f"Unknown context type: {fields['type']}")

    metadata, body = frontmatter.decode(text)
    for key, value in fields.items():
        if key in ("id", "content", "lastModified"):
            continue
        metadata[key] = value
    metadata["updatedAt"] = now_iso()
    if fields.get("content") is not None:
        body = fields["content"]

    write_text(path, frontmatter.encode(body, metadata))
    return _load(path)


def delete_context(publication_id: str, context_id: str) -> bool:
    return delete_file(_context_path(publication_id, context_id))
