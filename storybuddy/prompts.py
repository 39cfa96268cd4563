"""System prompt assembly: context bundle rendering and Handlebars templates."""

from collections.abc import Callable
from typing import Any

import pybars

from storybuddy import storage

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


NO_CONTEXT_TEXT = "No context information available yet."

CHAPTERS_HEADING = "# WRITTEN CHAPTERS"
LORE_HEADING = "# STORY UNIVERSE CONTEXT"
ENTRY_SEPARATOR = "\n\n---\n\n"
BLOCK_SEPARATOR = "\n\n===\n\n"

TYPE_LABELS: dict[str, str] = {
    "character": "CHARACTER",
    "place": "PLACE",
    "location": "PLACE",
    "object": "OBJECT",
    "story": "STORY",
    "world": "WORLD",
    "rule": "RULE/SYSTEM",
    "magic": "MAGIC",
    "technology": "TECHNOLOGY",
    "culture": "CULTURE",
    "history": "HISTORY",
    "chapter": "CHAPTER",
    "other": "CONTEXT",
}

CLOSING_INSTRUCTION = (
    "IMPORTANT: Use the context information above to give consistent and "
    "coherent answers. All characters, places and concepts should match the "
    "established universe."
)

# Triple-stash everywhere: prompt text must not be HTML-escaped.
ENTRY_TEMPLATE = "## {{{label}}}: {{{name}}}\n\n{{{content}}}"

SYSTEM_PROMPT_TEMPLATE = "{{{instructions}}}\n\n{{{context}}}\n\n{{{closing}}}"


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def _render_entries(docs: list[dict[str, Any]], label_for: Callable[[dict], str]) -> str:
    return ENTRY_SEPARATOR.join(
        render_prompt(ENTRY_TEMPLATE, {
            "label": label_for(doc),
            "name": doc.get("name", ""),
            "content": doc.get("content", ""),
        })
        for doc in docs
    )


def build_context_string(docs: list[dict[str, Any]]) -> str:
    """Render context documents: chapters in one block, all other lore in another."""
    if not docs:
        return NO_CONTEXT_TEXT

    chapters = [d for d in docs if d.get("type") == "chapter"]
    lore = [d for d in docs if d.get("type") != "chapter"]

    blocks = []
    if chapters:
        blocks.append(
            f"{CHAPTERS_HEADING}\n\n"
            + _render_entries(chapters, lambda _doc: TYPE_LABELS["chapter"])
        )
    if lore:
        blocks.append(
            f"{LORE_HEADING}\n\n"
            + _render_entries(lore, lambda doc: TYPE_LABELS.get(doc.get("type"), "CONTEXT"))
        )
    return BLOCK_SEPARATOR.join(blocks)


def build_context(publication_id: str) -> str:
    return build_context_string(storage.list_context(publication_id))


def build_system_prompt(mode: str, context: str, custom_prompt: str | None = None) -> str:
    """Base instruction for mode (or the custom prompt in full) + context + closing."""
    if mode not in storage.DEFAULT_SYSTEM_PROMPTS:
        raise ValueError(f"Invalid mode: {mode}")
    return render_prompt(SYSTEM_PROMPT_TEMPLATE, {
        "instructions": custom_prompt or storage.DEFAULT_SYSTEM_PROMPTS[mode],
        "context": context,
        "closing": CLOSING_INSTRUCTION,
    })
