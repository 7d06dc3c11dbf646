"""Validation utilities for MCP tools."""

from collections.abc import Iterable
from typing import Any

from .errors import ValidationError

AGENT_TYPES = ["domain_expert", "technical", "all"]
TASK_INTENTS = [
    "create",
    "refine",
    "breakdown",
    "review",
    "plan",
    "implement",
    "select",
    "escalate",
    "deploy",
]
SCOPES = ["epic", "story", "subtask", "portfolio", "theme", "spike"]
COMPLEXITIES = ["simple", "medium", "complex", "critical"]
OUTPUT_FORMATS = ["jira", "confluence", "github", "gitlab"]
DOMAINS = [
    "security",
    "payments",
    "compliance",
    "performance",
    "accessibility",
    "data",
    "infrastructure",
    "api",
    "frontend",
    "backend",
]
UPDATE_OPERATIONS = ["update", "enhance"]

MAX_STATEMENT_LENGTH = 10000


def validate_required_string(value: Any, field_name: str) -> str:
    """Validate a required, non-blank string argument.

    Args:
        value: Argument value
        field_name: Name of the field for error messages

    Returns:
        The stripped string

    Raises:
        ValidationError: If value is missing, not a string, or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def validate_choice(value: Any, choices: Iterable[str], field_name: str) -> None:
    """Validate that a value is one of the allowed choices.

    Raises:
        ValidationError: If value is not allowed
    """
    allowed = list(choices)
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field_name} '{value}'. Must be one of: {', '.join(allowed)}"
        )


def validate_optional_choice(
    value: Any, choices: Iterable[str], field_name: str
) -> None:
    if value is not None:
        validate_choice(value, choices, field_name)


def validate_statement(statement: str, max_length: int = MAX_STATEMENT_LENGTH) -> None:
    """Validate a task statement length.

    Raises:
        ValidationError: If the statement is not a string or exceeds max_length
    """
    if not isinstance(statement, str):
        raise ValidationError("task_statement must be a string")
    if len(statement) > max_length:
        raise ValidationError(
            f"task_statement too long ({len(statement)} chars). "
            f"Maximum allowed is {max_length} characters."
        )


def validate_string_list(value: Any, field_name: str) -> list[str]:
    """Validate a list of strings.

    Raises:
        ValidationError: If value is not a list of strings
    """
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field_name} must be a list of strings")
    return value


def collect_file_paths(file_paths: Any = None, file_path: Any = None) -> list[str]:
    """Merge the list and single-path forms of the file path arguments.

    Raises:
        ValidationError: If either argument has the wrong type
    """
    paths: list[str] = []
    if file_paths is not None:
        paths.extend(validate_string_list(file_paths, "file_paths"))
    if file_path is not None:
        if not isinstance(file_path, str):
            raise ValidationError("file_path must be a string")
        paths.append(file_path)
    return paths
