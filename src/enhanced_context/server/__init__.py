"""MCP server transports.

    from enhanced_context.server.main import main, serve
    from enhanced_context.server.http import HttpServer
"""

from .app import create_server
from .logging import configure_logging

__all__ = [
    "configure_logging",
    "create_server",
]
