"""LLM client: HTTP connection to a hosted chat-completion API.

The chat flow injects an LLM callable matching the protocol:

    async def __call__(self, system: str, messages: list[dict], model: str | None) -> str: ...

`messages` are {"role": "user"|"assistant", "content": str} dicts, oldest
first, ending with the new user message.

ChatLLM supports two wire formats, selected by provider_format:

    "anthropic"   POST /v1/messages, system prompt in the dedicated
                  "system" field, last 10 messages.
    "openrouter"  POST /api/v1/chat/completions (OpenAI-compatible),
                  system prompt as a leading "system" message, last 11
                  entries counting that system message.

Failures are never retried here; the caller surfaces them and the user
resends.
"""

from __future__ import annotations

import logging
import os
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)

MAX_TOKENS = 4000
TEMPERATURE = 0.7
HISTORY_LIMIT = 10

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
APP_REFERER = "https://storybuddy.app"
APP_TITLE = "Storybuddy"


# ---------------------------------------------------------------------------
# Errors; status_code is the HTTP status the API layer answers with
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""

    status_code = 500


class LLMConfigError(LLMError):
    """The API credential for the configured provider is missing."""


class LLMAuthError(LLMError):
    """The provider rejected the API credential."""

    status_code = 401


class LLMRateLimitError(LLMError):
    """The provider is throttling requests; the user may resend later."""

    status_code = 429


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self, system: str, messages: list[dict[str, str]], model: str | None = None
    ) -> str: ...


ProviderFormat = Literal["anthropic", "openrouter"]


class ChatLLM:
    """Async HTTP client for hosted chat-completion APIs.

    Args:
        api_key:         Provider credential. An empty key raises
                         LLMConfigError on call, not on construction.
        provider_format: Wire format to use. Defaults to "anthropic".
        model:           Default model id when the caller passes none.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        api_key: str,
        provider_format: ProviderFormat = "anthropic",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    @property
    def provider_format(self) -> str:
        return self._format

    def _resolve_model(self, model: str | None) -> str:
        if self._format == "anthropic":
            # Catalog ids look like "anthropic/claude-3.5-sonnet:beta"; the
            # Anthropic API only accepts its own bare model names.
            if model and "/" not in model:
                return model
            return self._model or DEFAULT_ANTHROPIC_MODEL
        return model or self._model

    def _build_request(
        self, system: str, messages: list[dict[str, str]], model: str | None
    ) -> tuple[str, dict[str, str], dict]:
        """Return (url, headers, body) for the configured format."""
        if self._format == "openrouter":
            headers = {
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": APP_REFERER,
                "X-Title": APP_TITLE,
            }
            framed = [{"role": "system", "content": system}, *messages]
            body = {
                "model": self._resolve_model(model),
                "max_tokens": MAX_TOKENS,
                "temperature": TEMPERATURE,
                "messages": [framed[0], *framed[1:][-HISTORY_LIMIT:]],
            }
            return OPENROUTER_URL, headers, body

        # anthropic (default)
        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        body = {
            "model": self._resolve_model(model),
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "system": system,
            "messages": messages[-HISTORY_LIMIT:],
        }
        return ANTHROPIC_URL, headers, body

    def _parse_response(self, data: dict) -> str:
        """Extract the assistant text from the response body."""
        if self._format == "openrouter":
            choices = data.get("choices")
            if not choices or not isinstance(choices[0].get("message"), dict):
                raise LLMError("Unexpected response format from OpenRouter")
            content = choices[0]["message"].get("content")
            if not isinstance(content, str):
                raise LLMError("Unexpected response format from OpenRouter")
            return content

        content = data.get("content")
        if not content or content[0].get("type") != "text":
            raise LLMError("Unexpected response type from Anthropic")
        return content[0]["text"]

    async def __call__(
        self, system: str, messages: list[dict[str, str]], model: str | None = None
    ) -> str:
        if not self._api_key:
            raise LLMConfigError(
                f"API key not configured for {self._format}. "
                f"Set {_KEY_ENV[self._format]} in the environment."
            )
        url, headers, body = self._build_request(system, messages, model)
        logger.debug(
            "llm call format=%s model=%s messages=%d system_len=%d",
            self._format, body["model"], len(body["messages"]), len(system),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=headers)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {url}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                raise LLMAuthError("Authentication failed. Check your API key.") from e
            if status == 429:
                raise LLMRateLimitError("Rate limit reached. Please try again later.") from e
            raise LLMError(f"LLM backend returned HTTP {status}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response format=%s len=%d", self._format, len(text))
        return text


_KEY_ENV: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


def llm_from_env() -> ChatLLM:
    """Build the client from LLM_PROVIDER and the matching API key variable."""
    provider = os.getenv("LLM_PROVIDER", "anthropic").strip().lower()
    if provider not in _KEY_ENV:
        raise LLMConfigError(f"Unknown LLM_PROVIDER: {provider}")
    model = os.getenv("ANTHROPIC_MODEL", "") if provider == "anthropic" else ""
    return ChatLLM(
        api_key=os.getenv(_KEY_ENV[provider], ""),
        provider_format=provider,
        model=model,
    )
