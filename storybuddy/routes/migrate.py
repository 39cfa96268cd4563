"""Legacy chat-history migration endpoints."""

from fastapi import APIRouter, HTTPException

from storybuddy import storage

from .models import MigrateBody

router = APIRouter()


@router.get("/migrate")
async def migration_status():
    """Report whether legacy chat histories exist and still need migrating."""
    return storage.check_migration_status()


@router.post("/migrate")
async def run_migration(body: MigrateBody | None = None):
    """Convert legacy chat histories into sessions of a publication."""
    publication_id = body.publication_id if body else None
    try:
        result = storage.run_migration(publication_id)
    except LookupError as e:
        raise HTTPException(404, str(e))
    return {"success": True, **result}
