"""Tests for context bundle rendering and system prompt assembly."""

import pytest

from storybuddy import storage
from storybuddy.prompts import (
    BLOCK_SEPARATOR,
    CHAPTERS_HEADING,
    CLOSING_INSTRUCTION,
    LORE_HEADING,
    NO_CONTEXT_TEXT,
    PromptError,
    build_context,
    build_context_string,
    build_system_prompt,
    render_prompt,
)


def _doc(name, doc_type, content="text"):
    return {"name": name, "type": doc_type, "content": content}


def test_render_prompt_does_not_escape():
    assert render_prompt("{{{x}}}", {"x": "<b>&"}) == "<b>&"


def test_render_prompt_bad_template():
    with pytest.raises(PromptError):
        render_prompt("{{> missing_partial}}", {})


def test_empty_context_placeholder():
    assert build_context_string([]) == NO_CONTEXT_TEXT


def test_lore_entry_layout():
    text = build_context_string([_doc("Elena", "character", "A brave scout.")])
    assert text == f"{LORE_HEADING}\n\n## CHARACTER: Elena\n\nA brave scout."


def test_location_aliases_place():
    text = build_context_string([_doc("Harbor", "location"), _doc("Keep", "place")])
    assert "## PLACE: Harbor" in text
    assert "## PLACE: Keep" in text


def test_unknown_type_labelled_context():
    assert "## CONTEXT: Misc" in build_context_string([_doc("Misc", "other")])


@pytest.mark.parametrize("n_chapters,n_lore", [(0, 1), (1, 0), (2, 3), (3, 2), (1, 1)])
def test_chapters_and_lore_never_mix(n_chapters, n_lore):
    docs = [_doc(f"Chapter {i}", "chapter", f"chapter-body-{i}") for i in range(n_chapters)]
    docs += [_doc(f"Lore {i}", "world", f"lore-body-{i}") for i in range(n_lore)]
    # interleave so input order cannot explain the grouping
    docs = docs[::2] + docs[1::2]
    text = build_context_string(docs)

    blocks = text.split(BLOCK_SEPARATOR)
    assert len(blocks) == (n_chapters > 0) + (n_lore > 0)
    for block in blocks:
        if block.startswith(CHAPTERS_HEADING):
            assert "lore-body" not in block
            assert block.count("chapter-body") == n_chapters
        else:
            assert block.startswith(LORE_HEADING)
            assert "chapter-body" not in block
            assert block.count("lore-body") == n_lore


def test_chapters_block_comes_first():
    text = build_context_string([_doc("Lore", "world"), _doc("One", "chapter")])
    assert text.index(CHAPTERS_HEADING) < text.index(LORE_HEADING)


def test_build_context_reads_store():
    pid = storage.create_publication("Aurora", "test")["id"]
    assert build_context(pid) == NO_CONTEXT_TEXT
    storage.create_context(pid, "Elena", "character", "A brave scout.")
    assert "## CHARACTER: Elena" in build_context(pid)


def test_system_prompt_uses_mode_default():
    prompt = build_system_prompt("writing", "CTX")
    assert prompt.startswith(storage.DEFAULT_SYSTEM_PROMPTS["writing"])
    assert "\n\nCTX\n\n" in prompt
    assert prompt.endswith(CLOSING_INSTRUCTION)


def test_custom_prompt_replaces_instructions():
    prompt = build_system_prompt("brainstorming", "CTX", "Only list ideas.")
    assert prompt == f"Only list ideas.\n\nCTX\n\n{CLOSING_INSTRUCTION}"


def test_system_prompt_invalid_mode():
    with pytest.raises(ValueError):
        build_system_prompt("poetry", "CTX")
