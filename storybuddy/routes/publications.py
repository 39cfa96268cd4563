"""Publication CRUD endpoints."""

from fastapi import APIRouter, HTTPException

from storybuddy import storage

from .models import CreatePublication, UpdatePublication

router = APIRouter()


@router.get("/publications")
async def list_publications():
    """List publications with fresh counts and the active publication id."""
    return storage.list_publications()


@router.post("/publications", status_code=201)
async def create_publication(body: CreatePublication):
    """Create a publication; the first one becomes active."""
    try:
        return storage.create_publication(body.title, body.description, body.genre)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.get("/publications/{pid}")
async def get_publication(pid: str):
    publication = storage.get_publication(pid)
    if not publication:
        raise HTTPException(404, "Publication not found")
    return publication


@router.patch("/publications/{pid}")
async def update_publication(pid: str, body: UpdatePublication):
    """Update title, description or genre; setActive switches the active publication."""
    fields = body.model_dump(exclude_none=True, by_alias=True)
    updated = storage.update_publication(pid, fields)
    if not updated:
        raise HTTPException(404, "Publication not found")
    return updated


@router.delete("/publications/{pid}")
async def delete_publication(pid: str):
    """Delete a publication with all its context files, sessions and settings."""
    try:
        deleted = storage.delete_publication(pid)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not deleted:
        raise HTTPException(404, "Publication not found")
    return {"ok": True}
