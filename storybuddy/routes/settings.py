"""Health check and system prompt settings endpoints."""

from fastapi import APIRouter, HTTPException, Query

from storybuddy import storage

from .models import SystemPromptBody

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings/system-prompt")
async def get_system_prompt(
    mode: str, publication_id: str | None = Query(None, alias="publicationId")
):
    """Effective system prompt for a mode, and whether it is a stored override."""
    if mode not in storage.MODES:
        raise HTTPException(400, f"Invalid mode: {mode}")
    if publication_id and not storage.get_publication(publication_id):
        raise HTTPException(404, "Publication not found")
    override = storage.get_prompt_override(mode, publication_id)
    return {
        "mode": mode,
        "prompt": override or storage.DEFAULT_SYSTEM_PROMPTS[mode],
        "isCustom": override is not None,
        "defaultPrompt": storage.DEFAULT_SYSTEM_PROMPTS[mode],
    }


@router.put("/settings/system-prompt")
async def set_system_prompt(body: SystemPromptBody):
    """Store a per-mode override, for one publication or globally."""
    if body.publication_id and not storage.get_publication(body.publication_id):
        raise HTTPException(404, "Publication not found")
    try:
        storage.set_system_prompt(body.mode, body.prompt, body.publication_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"ok": True, "mode": body.mode, "prompt": body.prompt}
