"""Context file endpoints, scoped to a publication plus a global lookup."""

from fastapi import APIRouter, HTTPException

from storybuddy import storage

from .models import CreateContext, UpdateContext

router = APIRouter()


def _require_publication(pid: str) -> None:
    if not storage.get_publication(pid):
        raise HTTPException(404, "Publication not found")


@router.get("/publications/{pid}/context")
async def list_context(pid: str):
    """List all context files of a publication."""
    _require_publication(pid)
    return storage.list_context(pid)


@router.post("/publications/{pid}/context", status_code=201)
async def create_context(pid: str, body: CreateContext):
    _require_publication(pid)
    try:
        return storage.create_context(pid, body.name, body.type, body.content)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.patch("/publications/{pid}/context/{cid}")
async def update_context(pid: str, cid: str, body: UpdateContext):
    """Merge fields into the file's metadata; content replaces the body."""
    _require_publication(pid)
    try:
        updated = storage.update_context(pid, cid, body.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not updated:
        raise HTTPException(404, "Context file not found")
    return updated


@router.delete("/publications/{pid}/context/{cid}")
async def delete_context(pid: str, cid: str):
    _require_publication(pid)
    try:
        deleted = storage.delete_context(pid, cid)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not deleted:
        raise HTTPException(404, "Context file not found")
    return {"ok": True}


@router.get("/context/{cid}")
async def find_context(cid: str):
    """Look up a context file by id across all publications."""
    found = storage.find_context(cid)
    if not found:
        raise HTTPException(404, "Context file not found")
    publication_id, doc = found
    return {**doc, "publicationId": publication_id}
