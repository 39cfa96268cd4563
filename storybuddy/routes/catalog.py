"""Model catalog endpoint."""

from fastapi import APIRouter

from storybuddy import catalog

router = APIRouter()


@router.get("/models")
async def list_models(refresh: bool = False):
    """Available chat models; refresh=true bypasses the hour-long cache."""
    return await catalog.get_models(force_refresh=refresh)
