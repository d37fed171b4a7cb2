"""YAML front matter parsing for Markdown content files.

Content files open with a YAML block fenced by ``---`` lines:

    ---
    title: Getting started
    description: First steps with the theme
    date: 2024-01-15
    tags: [posts, guides]
    ---
    # Getting started

    This post begins...
"""

import re
from typing import Any

import yaml


DELIMITER = "---"

_FRONT_MATTER_PATTERN = re.compile(
    rf"^\ufeff?{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)\r?\n{re.escape(DELIMITER)}[ \t]*(?:\r?\n|$)",
    re.DOTALL,
)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front matter from Markdown content.

    Args:
        content: Full file content including front matter

    Returns:
        Tuple of (front_matter_dict, markdown_body).
        If no front matter is found, returns (empty dict, original content).

    Example:
        >>> metadata, body = parse_front_matter("---\\ntitle: Hello\\n---\\n# Hello")
        >>> metadata["title"]
        'Hello'
        >>> body
        '# Hello'
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content

    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content

    return metadata, content[match.end() :]


def serialize_front_matter(metadata: dict[str, Any], body: str) -> str:
    """Serialize metadata and body into a Markdown document with front matter.

    Empty metadata yields the body alone. Keys are sorted for determinism.
    """
    if not metadata:
        return body

    yaml_text = yaml.safe_dump(
        metadata,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=True,
    ).rstrip("\n")

    return f"{DELIMITER}\n{yaml_text}\n{DELIMITER}\n{body}"
