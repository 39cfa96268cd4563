"""Tests for the YAML front-matter document codec."""

from storybuddy import frontmatter


def test_encode_layout():
    text = frontmatter.encode("A brave scout.", {"name": "Elena", "type": "character"})
    assert text == "---\nname: Elena\ntype: character\n---\nA brave scout."


def test_decode_inverts_encode():
    metadata = {"name": "Elena", "type": "character", "createdAt": "2024-06-10T12:00:00+00:00"}
    body = "A brave scout.\n\nShe knows the northern passes."
    assert frontmatter.decode(frontmatter.encode(body, metadata)) == (metadata, body)


def test_unknown_keys_survive():
    metadata = {"name": "Keep", "type": "place", "mood": "grim", "tags": ["ruin", "north"]}
    decoded, _ = frontmatter.decode(frontmatter.encode("", metadata))
    assert decoded == metadata


def test_unicode_metadata():
    metadata = {"name": "Ærøskøbing", "type": "place"}
    text = frontmatter.encode("Hafen", metadata)
    assert "Ærøskøbing" in text
    assert frontmatter.decode(text) == (metadata, "Hafen")


def test_text_without_header_is_all_body():
    assert frontmatter.decode("Just prose.") == ({}, "Just prose.")


def test_empty_header():
    assert frontmatter.decode("---\n---\nbody") == ({}, "body")


def test_header_without_body():
    assert frontmatter.decode("---\nname: X\n---") == ({"name": "X"}, "")


def test_unterminated_header_is_body():
    text = "---\nname: X\nno closing line"
    assert frontmatter.decode(text) == ({}, text)


def test_non_mapping_yaml_is_ignored():
    assert frontmatter.decode("---\n- a\n- b\n---\nbody") == ({}, "body")
