"""Chat session endpoints: per-publication listing and saving, global get/rename/delete."""

from fastapi import APIRouter, HTTPException, Query

from storybuddy import storage

from .models import CreateSession, RenameSession, UpdateSession

router = APIRouter()


def _require_publication(pid: str) -> None:
    if not storage.get_publication(pid):
        raise HTTPException(404, "Publication not found")


@router.get("/publications/{pid}/sessions")
async def list_sessions(pid: str, mode: str | None = None):
    """Session summaries (no messages), newest first, optionally filtered by mode."""
    _require_publication(pid)
    return storage.list_sessions(pid, mode)


@router.post("/publications/{pid}/sessions", status_code=201)
async def create_session(pid: str, body: CreateSession):
    _require_publication(pid)
    messages = (
        [m.model_dump(exclude_none=True) for m in body.messages] if body.messages else None
    )
    try:
        return storage.create_session(pid, body.name, body.mode, messages, body.model)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.patch("/publications/{pid}/sessions/{sid}")
async def update_session(pid: str, sid: str, body: UpdateSession):
    """Save a session; messages, when sent, replace the whole transcript."""
    _require_publication(pid)
    fields = body.model_dump(exclude_none=True)
    try:
        updated = storage.update_session(pid, sid, fields)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not updated:
        raise HTTPException(404, "Session not found")
    return updated


@router.get("/sessions/{sid}")
async def get_session(
    sid: str, publication_id: str | None = Query(None, alias="publicationId")
):
    """Get a full session; without publicationId every publication is searched."""
    try:
        if publication_id is not None:
            _require_publication(publication_id)
        session = storage.get_session(sid, publication_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not session:
        raise HTTPException(404, "Session not found")
    return session


@router.patch("/sessions/{sid}")
async def rename_session(sid: str, body: RenameSession):
    try:
        if body.publication_id is not None:
            _require_publication(body.publication_id)
        session = storage.rename_session(sid, body.name, body.publication_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not session:
        raise HTTPException(404, "Session not found")
    return session


@router.delete("/sessions/{sid}")
async def delete_session(
    sid: str, publication_id: str | None = Query(None, alias="publicationId")
):
    try:
        if publication_id is not None:
            _require_publication(publication_id)
        deleted = storage.delete_session(sid, publication_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not deleted:
        raise HTTPException(404, "Session not found")
    return {"ok": True}
