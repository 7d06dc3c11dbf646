"""MCP server application.

Registers the tool dispatcher and tool listing on an ``mcp`` SDK server. The
same tool registry backs the HTTP transport.
"""

import json
from typing import Any

import structlog
from mcp.server import Server
from mcp.types import TextContent, Tool

from ..catalog import ConfigurationError
from ..services import ServiceFactory, get_service_factory
from ..tools import ToolFunc, build_tool_registry, get_all_tool_definitions

logger = structlog.get_logger()


def list_tool_definitions(factory: ServiceFactory) -> list[Tool]:
    """Tool schemas, with ``query_type`` limited to the configured values."""
    try:
        allowed = factory.config_loader.get_allowed_query_types()
    except ConfigurationError as e:
        logger.error("server.query_types_unavailable", error=str(e))
        allowed = []
    return get_all_tool_definitions(allowed)


def create_server(
    factory: ServiceFactory | None = None,
    timeout: float | None = None,
) -> tuple[Server, dict[str, ToolFunc]]:
    """Create and configure the MCP server.

    Args:
        factory: Service factory (the process-wide one by default)
        timeout: Deadline in seconds for load_enhanced_context

    Returns:
        Tuple of (Server, tool_registry). tool_registry maps tool names to
        async functions.
    """
    factory = factory or get_service_factory()
    info = factory.config_loader.load_server_config().server
    server = Server(info.name, version=info.version)

    tool_registry = build_tool_registry(factory, timeout=timeout)

    @server.call_tool()  # type: ignore[misc]
    async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[Any]:
        """Dispatch tool calls to the appropriate implementation."""
        if name not in tool_registry:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        try:
            result = await tool_registry[name](**(arguments or {}))
        except Exception as e:
            logger.error("tool.call_failed", tool=name, error=str(e), exc_info=True)
            return [TextContent(type="text", text=f"Error: {e}")]

        return [TextContent(type="text", text=json.dumps(result, default=str))]

    @server.list_tools()  # type: ignore[misc, no-untyped-call]
    async def handle_list_tools() -> list[Tool]:
        """Return all available tools with their schemas."""
        return list_tool_definitions(factory)

    logger.info("server.created", server_name=server.name, tool_count=len(tool_registry))
    return server, tool_registry
