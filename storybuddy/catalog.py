"""Model catalog for the model picker: fetch, filter, categorize, tag, cache.

The remote list comes from OpenRouter. The result is cached process-wide for
an hour; expiry is checked lazily on the next request. Callers always get a
list back: a missing key, an HTTP failure, or an empty catalog serves the
static FALLBACK_MODELS instead of an error.

The categorization and tagging tables below are plain data tuned against the
catalog as it looked when they were written; edit them rather than the rules.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

MODELS_URL = "https://openrouter.ai/api/v1/models"
CACHE_TTL_SECONDS = 60 * 60

# ── Rule tables ──────────────────────────────────────────

GENERAL_PROVIDER_PREFIXES = ("anthropic/", "openai/", "google/")

NSFW_DESCRIPTION_KEYWORDS = ("nsfw", "erotic", "uncensored")
NSFW_ID_MARKERS = (
    "lumimaid",
    "noromaid",
    "toppy",
    "mythomax",
    "fimbulvetr",
    "midnight",
    "spicyboros",
)
NSFW_PROVIDER_PREFIXES = ("neversleep/", "nothingiisreal/")
# "midnight" and friends also match unrelated search models.
NSFW_EXCLUDED_PREFIXES = ("perplexity/",)

CREATIVE_DESCRIPTION_KEYWORDS = ("creative writing", "storytelling", "fiction", "narrative")

RECOMMENDED_MODELS = (
    "anthropic/claude-3.5-sonnet:beta",
    "anthropic/claude-3.5-haiku",
    "openai/gpt-4o",
    "openai/gpt-4o-mini",
    "meta-llama/llama-3.1-405b-instruct",
    "google/gemini-pro-1.5",
    "mistralai/mistral-large",
    "qwen/qwen-2.5-72b-instruct",
    "liquid/lfm-40b",
    "nvidia/llama-3.1-nemotron-70b-instruct",
)

TAG_HUGE_CONTEXT = "🚀 Very large context"
TAG_LARGE_CONTEXT = "📚 Large context"
TAG_MEDIUM_CONTEXT = "📄 Medium context"
TAG_FAST = "⚡ Fast"
TAG_PREMIUM = "👑 Premium quality"
TAG_CREATIVE = "✍️ Creative writing"
TAG_ONLINE = "🌐 Online/Search"
TAG_MULTILINGUAL = "🌍 Multilingual"

FALLBACK_MODELS: tuple[dict[str, Any], ...] = (
    {
        "id": "anthropic/claude-3.5-sonnet:beta",
        "name": "Claude 3.5 Sonnet",
        "provider": "Anthropic",
        "description": "Very good for creative writing and complex analysis",
        "category": "premium",
        "pricing": {"prompt": 0.003, "completion": 0.015},
        "contextLength": 200000,
        "isModerated": True,
        "isRecommended": True,
        "tags": [TAG_PREMIUM, TAG_CREATIVE, TAG_LARGE_CONTEXT],
    },
    {
        "id": "anthropic/claude-3.5-haiku",
        "name": "Claude 3.5 Haiku",
        "provider": "Anthropic",
        "description": "Fast and efficient for simpler tasks",
        "category": "budget",
        "pricing": {"prompt": 0.0001, "completion": 0.0005},
        "contextLength": 200000,
        "isModerated": True,
        "isRecommended": True,
        "tags": [TAG_FAST, TAG_LARGE_CONTEXT],
    },
    {
        "id": "openai/gpt-4o",
        "name": "GPT-4o",
        "provider": "OpenAI",
        "description": "Versatile and strong across the board",
        "category": "premium",
        "pricing": {"prompt": 0.005, "completion": 0.015},
        "contextLength": 128000,
        "isModerated": True,
        "isRecommended": True,
        "tags": [TAG_PREMIUM, TAG_CREATIVE],
    },
    {
        "id": "openai/gpt-4o-mini",
        "name": "GPT-4o Mini",
        "provider": "OpenAI",
        "description": "Cheap and fast",
        "category": "budget",
        "pricing": {"prompt": 0.00015, "completion": 0.0006},
        "contextLength": 128000,
        "isModerated": True,
        "isRecommended": True,
        "tags": [TAG_FAST],
    },
    {
        "id": "meta-llama/llama-3.1-405b-instruct",
        "name": "Llama 3.1 405B",
        "provider": "Meta",
        "description": "Very large open-source model",
        "category": "premium",
        "pricing": {"prompt": 0.005, "completion": 0.015},
        "contextLength": 131072,
        "isModerated": False,
        "isRecommended": True,
        "tags": [TAG_PREMIUM],
    },
    {
        "id": "google/gemini-pro-1.5",
        "name": "Gemini Pro 1.5",
        "provider": "Google",
        "description": "Google's most advanced model",
        "category": "premium",
        "pricing": {"prompt": 0.00125, "completion": 0.005},
        "contextLength": 2000000,
        "isModerated": True,
        "isRecommended": True,
        "tags": [TAG_PREMIUM, TAG_HUGE_CONTEXT],
    },
)


@dataclass(frozen=True)
class CatalogCache:
    """Replaced as a whole, never mutated, so concurrent readers never see a torn cache."""

    models: tuple[dict[str, Any], ...]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, now: float) -> bool:
        return self.age(now) < CACHE_TTL_SECONDS


_cache: CatalogCache | None = None


def reset_cache() -> None:
    global _cache
    _cache = None


def _store(models: list[dict[str, Any]], now: float) -> None:
    global _cache
    _cache = CatalogCache(models=tuple(models), fetched_at=now)


# ── Processing ───────────────────────────────────────────


def categorize(model: dict[str, Any]) -> str:
    """First matching rule wins: general, nsfw, creative, else budget."""
    model_id = model.get("id", "")
    lowered_id = model_id.lower()
    description = (model.get("description") or "").lower()

    if model_id.startswith(GENERAL_PROVIDER_PREFIXES):
        return "general"

    looks_nsfw = (
        any(k in description for k in NSFW_DESCRIPTION_KEYWORDS)
        or any(m in lowered_id for m in NSFW_ID_MARKERS)
        or model_id.startswith(NSFW_PROVIDER_PREFIXES)
    )
    if looks_nsfw and not model_id.startswith(NSFW_EXCLUDED_PREFIXES):
        return "nsfw"

    if any(k in description for k in CREATIVE_DESCRIPTION_KEYWORDS):
        return "creative"
    return "budget"


def model_tags(model: dict[str, Any]) -> list[str]:
    lowered_id = model.get("id", "").lower()
    name = (model.get("name") or "").lower()
    description = (model.get("description") or "").lower()
    context_length = model.get("context_length") or 0

    tags = []
    if context_length > 500_000:
        tags.append(TAG_HUGE_CONTEXT)
    elif context_length > 200_000:
        tags.append(TAG_LARGE_CONTEXT)
    elif context_length > 100_000:
        tags.append(TAG_MEDIUM_CONTEXT)

    if (
        "fast" in description
        or "efficient" in description
        or "mini" in lowered_id
        or "haiku" in lowered_id
        or "small" in name
    ):
        tags.append(TAG_FAST)

    if any(k in description for k in ("flagship", "premium", "most advanced", "largest")):
        tags.append(TAG_PREMIUM)

    if (
        any(k in description for k in ("creative writing", "storytelling", "fiction"))
        or "creative" in lowered_id
        or "story" in lowered_id
    ):
        tags.append(TAG_CREATIVE)

    if any(k in description for k in ("online", "search", "real-time", "web search")):
        tags.append(TAG_ONLINE)

    if any(k in description for k in ("multilingual", "deutsch", "german")):
        tags.append(TAG_MULTILINGUAL)
    return tags


def is_usable(model: dict[str, Any]) -> bool:
    """Text models with a positive context length and a prompt price."""
    architecture = model.get("architecture") or {}
    is_text = (
        architecture.get("modality") in ("text", "text->text")
        or "text" in (architecture.get("input_modalities") or [])
    )
    pricing = model.get("pricing") or {}
    return (
        is_text
        and (model.get("context_length") or 0) > 0
        and pricing.get("prompt") is not None
    )


def process_model(model: dict[str, Any]) -> dict[str, Any]:
    model_id = model["id"]
    provider, _, short_name = model_id.partition("/")
    pricing = model.get("pricing") or {}
    return {
        "id": model_id,
        "name": model.get("name") or short_name or model_id,
        "provider": provider[:1].upper() + provider[1:],
        "description": model.get("description") or "No description available",
        "category": categorize(model),
        "pricing": {
            "prompt": float(pricing.get("prompt") or 0),
            "completion": float(pricing.get("completion") or 0),
        },
        "contextLength": model.get("context_length") or 0,
        "isModerated": bool((model.get("top_provider") or {}).get("is_moderated", False)),
        "isRecommended": model_id in RECOMMENDED_MODELS,
        "tags": model_tags(model),
    }


def process_models(raw: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Filter, convert, and sort: recommended first, then by name."""
    processed = []
    for model in raw:
        try:
            if model.get("id") and is_usable(model):
                processed.append(process_model(model))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping model {model.get('id') if isinstance(model, dict) else model!r}: {e}")
    processed.sort(key=lambda m: (not m["isRecommended"], m["name"].casefold()))
    return processed


def _fallback(
    now: float, reason: str, error: str | None = None, store: bool = True
) -> dict[str, Any]:
    models = [dict(m) for m in FALLBACK_MODELS]
    if store:
        _store(models, now)
    result: dict[str, Any] = {
        "models": models,
        "cached": False,
        "totalModels": len(models),
        "fallback": True,
        "reason": reason,
    }
    if error:
        result["error"] = error
    return result


async def get_models(force_refresh: bool = False) -> dict[str, Any]:
    """Return the processed catalog, from cache when fresh."""
    now = time.time()
    cache = _cache
    if not force_refresh and cache is not None and cache.is_fresh(now):
        return {
            "models": list(cache.models),
            "cached": True,
            "cacheAge": int(cache.age(now)),
            "totalModels": len(cache.models),
        }

    api_key = os.getenv("OPENROUTER_API_KEY", "")
    if not api_key:
        logger.warning("OpenRouter API key not configured, using fallback models")
        return _fallback(now, "API key missing")

    try:
        try:
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.get(MODELS_URL, headers={
                    "Authorization": f"Bearer {api_key}",
                    "HTTP-Referer": "https://storybuddy.app",
                    "X-Title": "Storybuddy",
                })
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"OpenRouter API error: {status}")
            return _fallback(now, f"OpenRouter API error: {status}", e.response.text)
        except httpx.HTTPError as e:
            logger.warning(f"OpenRouter request failed: {e}")
            return _fallback(now, "OpenRouter request failed", str(e))

        raw = resp.json().get("data") or []
        logger.info(f"Received {len(raw)} models from OpenRouter")
        models = process_models(raw) if raw else []
        if not models:
            logger.warning("No usable models from OpenRouter, using fallback models")
            return _fallback(now, "No models received")

        _store(models, now)
        return {
            "models": models,
            "cached": False,
            "totalModels": len(models),
            "source": "openrouter",
        }
    except Exception as e:
        logger.exception("Unexpected error while loading models")
        cache = _cache
        if cache is not None and cache.models:
            return {
                "models": list(cache.models),
                "cached": True,
                "totalModels": len(cache.models),
                "error": "Current data unavailable, showing cached models",
            }
        # Leave the cache empty so the next request retries upstream.
        return _fallback(now, "Unexpected error", str(e), store=False)
