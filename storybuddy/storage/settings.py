"""Per-mode system prompt overrides (per publication, with a global fallback)."""

from pathlib import Path
from typing import Any

from .core import data_dir, now_iso, read_json, write_json
from .publications import publication_dir
from .sessions import MODES

DEFAULT_BRAINSTORMING_PROMPT = """\
You are a creative brainstorming partner for developing story universes. You \
help develop characters, places, objects, history, geography, sociology, \
psychology, belief systems, science and magic.

YOUR TASK:
- Ask targeted questions to deepen ideas
- Suggest creative extensions
- Watch for consistency within the universe
- Develop details that bring the universe to life
- Encourage the exploration of new concepts

STYLE:
- Be curious and inspiring
- Ask open questions
- Offer concrete suggestions
- Think in connections\
"""

DEFAULT_WRITING_PROMPT = """\
You are a creative writing partner. You help develop gripping stories that \
take place in the established universe.

YOUR TASK:
- Write atmospheric, character-rich prose
- Stay consistent with the existing universe
- Develop suspenseful plot lines
- Create vivid dialogue and scenes
- Keep the established tone and style

STYLE:
- Atmospheric and detailed
- Character-focused
- Suspenseful and gripping
- Consistent with the universe\
"""

DEFAULT_SYSTEM_PROMPTS: dict[str, str] = {
    "brainstorming": DEFAULT_BRAINSTORMING_PROMPT,
    "writing": DEFAULT_WRITING_PROMPT,
}


def _check_mode(mode: str) -> None:
    if mode not in MODES:
        raise ValueError(f"Invalid mode: {mode}")


def _publication_prompts_path(publication_id: str) -> Path:
    return publication_dir(publication_id) / "settings" / "system-prompts.json"


def _global_prompts_path() -> Path:
    return data_dir() / "settings" / "system-prompts.json"


def get_prompt_override(mode: str, publication_id: str | None = None) -> str | None:
    """Stored non-empty override for mode, publication first, then global.

    Returns None when nothing is stored, so callers fall back to the default.
    """
    _check_mode(mode)
    if publication_id:
        stored = read_json(_publication_prompts_path(publication_id), {})
        prompt = stored.get("systemPrompts", {}).get(mode)
        if prompt:
            return prompt
    stored = read_json(_global_prompts_path(), {})
    return stored.get(mode) or None


def get_system_prompt(mode: str, publication_id: str | None = None) -> str:
    return get_prompt_override(mode, publication_id) or DEFAULT_SYSTEM_PROMPTS[mode]


def set_system_prompt(
    mode: str, prompt: str, publication_id: str | None = None
) -> dict[str, Any]:
    """Store an override for one mode; the other mode is left as is."""
    _check_mode(mode)
    if not isinstance(prompt, str):
        raise ValueError("Prompt must be a string")

    if publication_id:
        path = _publication_prompts_path(publication_id)
        data: dict[str, Any] = {"systemPrompts": {"brainstorming": "", "writing": ""}}
        stored = read_json(path, {})
        data["systemPrompts"].update(stored.get("systemPrompts", {}))
        data["systemPrompts"][mode] = prompt
        data["lastUpdated"] = now_iso()
    else:
        path = _global_prompts_path()
        data = {"brainstorming": "", "writing": ""}
        data.update(read_json(path, {}))
        data[mode] = prompt
        data["updatedAt"] = now_iso()
    write_json(path, data)
    return data
