"""One chat turn: assemble the system prompt, call the LLM, persist the transcript."""

import logging
from typing import Any

from storybuddy import storage
from storybuddy.llm import LLM
from storybuddy.prompts import build_context_string, build_system_prompt

logger = logging.getLogger(__name__)


def _to_wire(history: list[dict[str, Any]]) -> list[dict[str, str]]:
    return [
        {
            "role": "user" if msg.get("role") == "user" else "assistant",
            "content": msg.get("content", ""),
        }
        for msg in history
    ]


async def send_turn(
    message: str,
    mode: str,
    system_prompt: str,
    history: list[dict[str, Any]],
    llm: LLM,
    model: str | None = None,
) -> str:
    """Forward prior turns plus the new user message; return the assistant text.

    Truncation to the most recent turns happens in the LLM client, which
    knows whether the system prompt is counted inline.
    """
    messages = [*_to_wire(history), {"role": "user", "content": message}]
    logger.info(f"Chat turn mode={mode} history={len(history)} model={model or 'default'}")
    return await llm(system_prompt, messages, model)


async def run_chat(
    message: str,
    mode: str,
    llm: LLM,
    publication_id: str | None = None,
    session_id: str | None = None,
    custom_prompt: str | None = None,
    history: list[dict[str, Any]] | None = None,
    model: str | None = None,
) -> dict[str, Any]:
    """Execute a full chat turn.

    The prompt override resolves request > publication setting > global
    setting > default. With a session_id the history comes from the stored
    transcript (unless given explicitly) and the user message plus the reply
    are appended and saved in one write.

    Returns {"response", "contextFilesCount"} plus "session" when one was saved.
    Raises LookupError if the session does not exist, ValueError on a bad mode.
    """
    if not message or not mode:
        raise ValueError("Message and mode are required")
    if mode not in storage.MODES:
        raise ValueError(f"Invalid mode: {mode}")

    session = None
    if session_id:
        if publication_id is None:
            publication_id = storage.find_session(session_id)
        session = (
            storage.get_session(session_id, publication_id) if publication_id else None
        )
        if session is None:
            raise LookupError(f"Session {session_id} not found")

    docs = storage.list_context(publication_id) if publication_id else []
    override = custom_prompt or storage.get_prompt_override(mode, publication_id)
    system_prompt = build_system_prompt(mode, build_context_string(docs), override)

    if history is None:
        history = session["messages"] if session else []
    if model is None and session:
        model = session.get("model")

    user_msg = {"role": "user", "content": message, "timestamp": storage.now_iso()}
    reply = await send_turn(message, mode, system_prompt, history, llm, model)
    assistant_msg = {"role": "assistant", "content": reply, "timestamp": storage.now_iso()}

    result: dict[str, Any] = {"response": reply, "contextFilesCount": len(docs)}
    if session is not None:
        result["session"] = storage.append_messages(
            publication_id, session_id, [user_msg, assistant_msg]
        )
    return result
