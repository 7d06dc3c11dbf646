"""Custom error types for MCP tools."""

from typing import Any


class MCPError(Exception):
    """Base error for MCP tool failures."""

    pass


class ValidationError(MCPError):
    """Input validation failed."""

    pass


class NotFoundError(MCPError):
    """Resource not found."""

    pass


def error_response(error_type: str, message: str) -> dict[str, Any]:
    """Create a standardized error response."""
    return {"error": {"type": error_type, "message": message}}


def is_error_response(result: Any) -> bool:
    return isinstance(result, dict) and isinstance(result.get("error"), dict)
