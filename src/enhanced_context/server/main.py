"""Main entry point for the Enhanced Context MCP server."""

import argparse
import asyncio
import errno
import sys

import structlog

from .. import __version__
from ..catalog import ConfigurationError
from ..config import EnhancedContextSettings
from ..services import ServiceFactory
from .app import create_server
from .logging import configure_logging

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments with transport mode and options
    """
    parser = argparse.ArgumentParser(
        description="Enhanced Context MCP Server - SDLC contexts, templates and agents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  enhanced-context-server                     # HTTP on 127.0.0.1:3000
  enhanced-context-server --port 8080         # HTTP on port 8080
  enhanced-context-server --stdio             # stdio transport for local clients
""",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Run with stdio transport (default: HTTP)",
    )
    parser.add_argument("--host", default=None, help="HTTP server host")
    parser.add_argument("--port", type=int, default=None, help="HTTP server port")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the MCP server."""
    args = parse_args(argv)
    serve(stdio=args.stdio, host=args.host, port=args.port)


def serve(
    stdio: bool = False,
    host: str | None = None,
    port: int | None = None,
    settings: EnhancedContextSettings | None = None,
) -> None:
    """Configure logging and run the chosen transport until shutdown."""
    settings = settings or EnhancedContextSettings()
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    transport = "stdio" if stdio else "http"
    logger.info("enhanced_context.starting", version=__version__, transport=transport)

    factory = ServiceFactory(settings)
    try:
        factory.config_loader.load_server_config()
        factory.config_loader.load_mappings()
        factory.config_loader.load_combinations()
    except ConfigurationError as e:
        logger.error("configuration.invalid", error=str(e))
        sys.exit(1)

    try:
        if stdio:
            asyncio.run(run_stdio_server(factory, settings))
        else:
            asyncio.run(
                run_http_server(
                    factory,
                    settings,
                    host or settings.server_host,
                    port or settings.server_port,
                )
            )
    except KeyboardInterrupt:
        logger.info("server.shutdown", reason="keyboard_interrupt")


async def run_stdio_server(
    factory: ServiceFactory, settings: EnhancedContextSettings
) -> None:
    """Run the MCP server with stdio transport."""
    from mcp.server.stdio import stdio_server

    server, _tool_registry = create_server(factory, timeout=settings.request_timeout)
    await factory.initialize()

    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("server.ready", transport="stdio")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await factory.close()
        logger.info("server.services_closed")


async def run_http_server(
    factory: ServiceFactory,
    settings: EnhancedContextSettings,
    host: str,
    port: int,
) -> None:
    """Run the MCP server with HTTP transport."""
    from .http import HttpServer

    _server, tool_registry = create_server(factory, timeout=settings.request_timeout)
    http_server = HttpServer(tool_registry, factory, host=host, port=port)

    try:
        await http_server.run()
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error(
                "server.port_in_use",
                port=port,
                error=f"Port {port} is already in use. Use --port to pick another.",
            )
            sys.exit(1)
        raise


if __name__ == "__main__":
    main()
