"""Chat turn endpoint."""

import logging

from fastapi import APIRouter, HTTPException

from storybuddy.chat import run_chat
from storybuddy.llm import LLMError, llm_from_env

from .models import ChatBody

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat(body: ChatBody):
    """Send one message; the reply is appended to the session when sessionId is given."""
    history = (
        [m.model_dump(exclude_none=True) for m in body.conversation_history]
        if body.conversation_history is not None
        else None
    )
    try:
        return await run_chat(
            message=body.message,
            mode=body.mode,
            llm=llm_from_env(),
            publication_id=body.publication_id,
            session_id=body.session_id,
            custom_prompt=body.system_prompt,
            history=history,
            model=body.model,
        )
    except LookupError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))
    except LLMError as e:
        logger.warning(f"Chat turn failed: {e}")
        raise HTTPException(e.status_code, str(e))
