"""Markdown documents with a YAML front-matter header.

    ---
    name: Elena
    type: character
    ---
    A brave scout.

decode() splits a document into (metadata, body); encode() is its inverse.
Metadata keys the caller does not know about survive a decode/encode cycle,
which is what the merge-in-place update in the context store relies on.
A body containing a line of just "---" is not supported.
"""

from typing import Any

import yaml

DELIMITER = "---"


def decode(text: str) -> tuple[dict[str, Any], str]:
    """Split text into (metadata, body). Text without a header is all body."""
    opening = DELIMITER + "\n"
    if not text.startswith(opening):
        return {}, text

    rest = text[len(opening):]
    if rest.startswith(DELIMITER + "\n"):
        header, body = "", rest[len(DELIMITER) + 1:]
    elif rest == DELIMITER:
        header, body = "", ""
    else:
        end = rest.find("\n" + DELIMITER + "\n")
        if end == -1:
            if not rest.endswith("\n" + DELIMITER):
                return {}, text
            header, body = rest[: -len(DELIMITER) - 1], ""
        else:
            header = rest[:end]
            body = rest[end + len(DELIMITER) + 2:]

    metadata = yaml.safe_load(header) if header.strip() else {}
    if not isinstance(metadata, dict):
        metadata = {}
    return metadata, body


def encode(body: str, metadata: dict[str, Any]) -> str:
    header = yaml.safe_dump(
        dict(metadata),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{DELIMITER}\n{header}{DELIMITER}\n{body}"
