"""Tests for the chat turn: prompt resolution, history, and transcript persistence."""

import pytest

from storybuddy import storage
from storybuddy.chat import run_chat, send_turn
from storybuddy.llm import LLMAuthError
from storybuddy.prompts import NO_CONTEXT_TEXT


class RecordingLLM:
    """Returns a canned reply and records what it was called with."""

    def __init__(self, reply: str = "Here is an idea.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def __call__(self, system, messages, model=None):
        self.calls.append({"system": system, "messages": messages, "model": model})
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def pid():
    return storage.create_publication("Aurora", "test")["id"]


@pytest.mark.asyncio
async def test_send_turn_appends_user_message():
    llm = RecordingLLM()
    history = [
        {"role": "user", "content": "Hi", "id": "1", "timestamp": "t"},
        {"role": "assistant", "content": "Hello!", "id": "2", "timestamp": "t"},
    ]
    reply = await send_turn("What next?", "brainstorming", "SYS", history, llm)
    assert reply == "Here is an idea."
    assert llm.calls[0]["messages"] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "What next?"},
    ]
    assert llm.calls[0]["system"] == "SYS"


@pytest.mark.asyncio
async def test_run_chat_without_publication_uses_placeholder():
    llm = RecordingLLM()
    result = await run_chat("Give me a villain", "brainstorming", llm)
    assert result == {"response": "Here is an idea.", "contextFilesCount": 0}
    assert NO_CONTEXT_TEXT in llm.calls[0]["system"]
    assert llm.calls[0]["system"].startswith(storage.DEFAULT_SYSTEM_PROMPTS["brainstorming"])


@pytest.mark.asyncio
async def test_run_chat_includes_publication_context(pid):
    storage.create_context(pid, "Elena", "character", "A brave scout.")
    llm = RecordingLLM()
    result = await run_chat("Describe Elena", "writing", llm, publication_id=pid)
    assert result["contextFilesCount"] == 1
    assert "## CHARACTER: Elena" in llm.calls[0]["system"]


@pytest.mark.asyncio
async def test_prompt_override_precedence(pid):
    storage.set_system_prompt("writing", "GLOBAL")
    llm = RecordingLLM()
    await run_chat("x", "writing", llm, publication_id=pid)
    assert llm.calls[-1]["system"].startswith("GLOBAL")

    storage.set_system_prompt("writing", "PUBLICATION", pid)
    await run_chat("x", "writing", llm, publication_id=pid)
    assert llm.calls[-1]["system"].startswith("PUBLICATION")

    await run_chat("x", "writing", llm, publication_id=pid, custom_prompt="REQUEST")
    assert llm.calls[-1]["system"].startswith("REQUEST")


@pytest.mark.asyncio
async def test_session_transcript_appended(pid):
    session = storage.create_session(pid, "Draft 1", "writing", model="openai/gpt-4o")
    llm = RecordingLLM("Once upon a time.")
    result = await run_chat("Begin", "writing", llm, session_id=session["id"])

    saved = result["session"]
    assert saved["messageCount"] == 2
    assert [m["role"] for m in saved["messages"]] == ["user", "assistant"]
    assert saved["messages"][1]["content"] == "Once upon a time."
    assert llm.calls[0]["model"] == "openai/gpt-4o"
    assert storage.list_sessions(pid)[0]["messageCount"] == 2


@pytest.mark.asyncio
async def test_session_history_forwarded(pid):
    session = storage.create_session(pid, "Draft 1", "writing", [
        {"role": "user", "content": "Earlier question"},
        {"role": "assistant", "content": "Earlier answer"},
    ])
    llm = RecordingLLM()
    await run_chat("Follow up", "writing", llm, publication_id=pid, session_id=session["id"])
    contents = [m["content"] for m in llm.calls[0]["messages"]]
    assert contents == ["Earlier question", "Earlier answer", "Follow up"]


@pytest.mark.asyncio
async def test_missing_session_raises_lookup_error(pid):
    with pytest.raises(LookupError):
        await run_chat("x", "writing", RecordingLLM(), session_id="999")


@pytest.mark.asyncio
@pytest.mark.parametrize("message,mode", [("", "writing"), ("x", ""), ("x", "poetry")])
async def test_validation(message, mode):
    with pytest.raises(ValueError):
        await run_chat(message, mode, RecordingLLM())


@pytest.mark.asyncio
async def test_llm_failure_leaves_transcript_untouched(pid):
    session = storage.create_session(pid, "Draft 1", "writing")
    llm = RecordingLLM(error=LLMAuthError("Authentication failed."))
    with pytest.raises(LLMAuthError):
        await run_chat("x", "writing", llm, session_id=session["id"])
    assert storage.get_session(session["id"], pid)["messageCount"] == 0
