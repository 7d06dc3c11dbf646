"""Parsing of agent profile documents.

A profile is markdown, optionally opening with a YAML front-matter block::

    ---
    name: QA Engineer
    description: Plans and writes tests
    type: technical
    specializations: [testing, automation]
    model: sonnet
    ---

Without front matter, the name comes from the first ``# Heading`` and the
description from the line after ``## Description``.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Union

import yaml

FRONT_MATTER = re.compile(r"^---\n([\s\S]*?)\n---")
NAME_HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)
DESCRIPTION_HEADING = re.compile(r"^##\s+Description\s*\n(.+)$", re.MULTILINE)


@dataclass
class ParsedFrontMatter:
    """Metadata read from a well-formed front-matter block."""

    name: str
    description: str = ""
    type: str | None = None
    specializations: list[str] = field(default_factory=list)
    model: str | None = None


@dataclass
class ParsedHeadingFallback:
    """Metadata read from markdown headings."""

    name: str
    description: str = ""


@dataclass
class ParseFailed:
    """A front-matter block was present but could not be parsed."""

    error: str


ProfileParse = Union[ParsedFrontMatter, ParsedHeadingFallback, ParseFailed]


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list | tuple):
        return [str(item) for item in value]
    return []


def parse_headings(agent_id: str, content: str) -> ParsedHeadingFallback:
    """Extract name and description from markdown headings."""
    name_match = NAME_HEADING.search(content)
    desc_match = DESCRIPTION_HEADING.search(content)
    return ParsedHeadingFallback(
        name=name_match.group(1).strip() if name_match else agent_id,
        description=desc_match.group(1).strip() if desc_match else "",
    )


def parse_agent_profile(agent_id: str, content: str) -> ProfileParse:
    """Parse profile metadata.

    Args:
        agent_id: Profile id, used as the name when none is declared
        content: Raw profile document

    Returns:
        ParsedFrontMatter when a valid front-matter mapping is present,
        ParseFailed when a front-matter block is malformed, and
        ParsedHeadingFallback otherwise
    """
    match = FRONT_MATTER.match(content)
    if not match:
        return parse_headings(agent_id, content)

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        return ParseFailed(error=str(e))
    if not isinstance(data, dict):
        return ParseFailed(error="front matter is not a mapping")

    model = data.get("model")
    return ParsedFrontMatter(
        name=str(data.get("name") or agent_id),
        description=str(data.get("description") or ""),
        type=data.get("type"),
        specializations=_as_list(data.get("specializations")),
        model=str(model) if model else None,
    )


def render_profile(metadata: dict[str, Any], body: str) -> str:
    """Build a profile document from front-matter fields and a markdown body."""
    front = {k: v for k, v in metadata.items() if v not in (None, "", [])}
    header = yaml.safe_dump(front, sort_keys=False, allow_unicode=True).strip()
    return f"---\n{header}\n---\n\n{body.lstrip()}"


def strip_front_matter(content: str) -> str:
    """Return the document body without its front-matter block."""
    match = FRONT_MATTER.match(content)
    if not match:
        return content
    return content[match.end() :].lstrip("\n")
