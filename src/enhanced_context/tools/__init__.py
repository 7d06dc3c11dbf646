"""MCP tool implementations and registration."""

from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from ..services import ServiceFactory
from .agents import get_agent_tools
from .context import get_context_tools
from .definitions import get_all_tool_definitions
from .errors import MCPError, NotFoundError, ValidationError, error_response, is_error_response
from .guidance import get_guidance_tools

logger = structlog.get_logger()

# Type alias for async tool function
ToolFunc = Callable[..., Coroutine[Any, Any, dict[str, Any]]]


def build_tool_registry(
    factory: ServiceFactory,
    timeout: float | None = None,
) -> dict[str, ToolFunc]:
    """Create every service and collect the tool implementations.

    Args:
        factory: Source of the shared storage and cache backends
        timeout: Deadline in seconds for load_enhanced_context

    Returns:
        Dictionary mapping tool names to async implementations
    """
    enhanced_service = factory.create_enhanced_context_service()

    tool_registry: dict[str, ToolFunc] = {}
    tool_registry.update(
        get_context_tools(
            enhanced_service,
            enhanced_service.combination_service,
            enhanced_service.intent_analyzer,
            timeout=timeout,
        )
    )
    tool_registry.update(
        get_agent_tools(enhanced_service.agent_service, enhanced_service)
    )
    tool_registry.update(get_guidance_tools(factory.create_standards_service()))

    logger.info("tools.registered", tool_count=len(tool_registry))
    return tool_registry


__all__ = [
    "MCPError",
    "NotFoundError",
    "ToolFunc",
    "ValidationError",
    "build_tool_registry",
    "error_response",
    "get_agent_tools",
    "get_all_tool_definitions",
    "get_context_tools",
    "get_guidance_tools",
    "is_error_response",
]
