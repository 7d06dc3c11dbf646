"""HTTP transport for the Enhanced Context MCP server using Starlette.

Provides:
- POST /api/mcp and /mcp: JSON-RPC 2.0 requests, plus the legacy flat
  ``{"tool": ..., "arguments": ...}`` calling convention
- GET /api/mcp and /mcp: the tool listing, without authentication
- GET /health: health check
"""

import json
import time
from datetime import UTC, datetime
from typing import Any

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .. import __version__
from ..catalog import ConfigurationError
from ..services import ServiceFactory
from ..tools import ToolFunc, is_error_response
from .app import list_tool_definitions

logger = structlog.get_logger()

API_KEY_HEADER = "x-api-key"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
AUTH_REQUIRED = -32001


class JsonRpcError(Exception):
    """A request failed with a JSON-RPC error code."""

    def __init__(self, code: int, message: str, status_code: int = 200) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


def _rpc_result(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _rpc_error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _failed(result: Any) -> bool:
    return is_error_response(result) or (isinstance(result, dict) and bool(result.get("isError")))


class HttpServer:
    """HTTP server wrapper for the tool registry."""

    def __init__(
        self,
        tool_registry: dict[str, ToolFunc],
        factory: ServiceFactory,
        host: str = "127.0.0.1",
        port: int = 3000,
    ) -> None:
        """Initialize HTTP server.

        Args:
            tool_registry: Dictionary mapping tool names to async functions
            factory: Service factory, for configuration and shutdown
            host: Host to bind to
            port: Port to bind to
        """
        self.tool_registry = tool_registry
        self.factory = factory
        self.host = host
        self.port = port
        self.started_at = time.monotonic()

    @property
    def auth_enabled(self) -> bool:
        return self.factory.config_loader.load_server_config().security.enable_authentication

    def _authorized(self, request: Request) -> bool:
        if not self.auth_enabled:
            return True
        return bool(request.headers.get(API_KEY_HEADER, "").strip())

    def _tool_list(self) -> list[dict[str, Any]]:
        return [
            tool.model_dump(exclude_none=True)
            for tool in list_tool_definitions(self.factory)
        ]

    async def health_handler(self, request: Request) -> JSONResponse:
        """Health check endpoint."""
        checks: dict[str, str] = {}
        try:
            info = self.factory.config_loader.load_server_config().server
            self.factory.config_loader.load_mappings()
            self.factory.config_loader.load_combinations()
            checks["config"] = "ok"
            name, version = info.name, info.version
        except ConfigurationError as e:
            checks["config"] = f"error: {e}"
            name, version = "enhanced-context-mcp", __version__
        checks["tools"] = f"{len(self.tool_registry)} registered"

        healthy = checks["config"] == "ok"
        return JSONResponse(
            {
                "status": "healthy" if healthy else "degraded",
                "server": name,
                "version": version,
                "uptime": round(time.monotonic() - self.started_at, 3),
                "timestamp": datetime.now(UTC).isoformat(),
                "checks": checks,
            },
            status_code=200 if healthy else 503,
        )

    async def list_tools_handler(self, request: Request) -> JSONResponse:
        """Tool listing (GET), public so documentation clients can read it."""
        try:
            return JSONResponse({"tools": self._tool_list()})
        except ConfigurationError as e:
            logger.error("http.list_tools_failed", error=str(e))
            return JSONResponse({"error": str(e)}, status_code=500)

    async def mcp_handler(self, request: Request) -> Response:
        """Single POST endpoint for JSON-RPC and legacy tool calls."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("http.invalid_json", error=str(e))
            return JSONResponse(
                _rpc_error(None, PARSE_ERROR, f"Parse error: {e}"), status_code=400
            )

        if not isinstance(body, dict):
            return JSONResponse(
                _rpc_error(None, INVALID_REQUEST, "Request must be a JSON object"),
                status_code=400,
            )

        if "method" in body:
            return await self._handle_rpc(request, body)
        if "jsonrpc" in body and "tool" not in body:
            return JSONResponse(
                _rpc_error(body.get("id"), INVALID_REQUEST, "Missing method"),
                status_code=400,
            )
        return await self._handle_legacy(request, body)

    async def _handle_rpc(self, request: Request, body: dict[str, Any]) -> Response:
        request_id = body.get("id")
        method = body.get("method")
        if body.get("jsonrpc") != "2.0" or not isinstance(method, str):
            return JSONResponse(
                _rpc_error(request_id, INVALID_REQUEST, "Invalid JSON-RPC 2.0 request"),
                status_code=400,
            )

        if method == "notifications/initialized":
            return Response(status_code=204)

        logger.debug("http.rpc_request", method=method, id=request_id)
        try:
            result = await self._dispatch(request, method, body.get("params") or {})
        except JsonRpcError as e:
            logger.info("http.rpc_error", method=method, code=e.code, error=e.message)
            return JSONResponse(
                _rpc_error(request_id, e.code, e.message), status_code=e.status_code
            )
        except Exception as e:
            logger.error("http.rpc_internal_error", method=method, error=str(e), exc_info=True)
            return JSONResponse(
                _rpc_error(request_id, INTERNAL_ERROR, f"Internal error: {e}"),
                status_code=500,
            )
        return JSONResponse(_rpc_result(request_id, result))

    async def _dispatch(
        self, request: Request, method: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        if method == "initialize":
            info = self.factory.config_loader.load_server_config().server
            return {
                "protocolVersion": info.protocol_version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": info.name, "version": info.version},
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self._tool_list()}
        if method == "tools/call":
            return await self._call_tool(request, params)
        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    async def _call_tool(self, request: Request, params: dict[str, Any]) -> dict[str, Any]:
        if not self._authorized(request):
            raise JsonRpcError(
                AUTH_REQUIRED,
                "Authentication required. Provide X-API-Key header.",
                status_code=401,
            )

        name = params.get("name")
        if not name:
            raise JsonRpcError(INVALID_PARAMS, "Missing tool name in params.name")
        if name not in self.tool_registry:
            raise JsonRpcError(METHOD_NOT_FOUND, f"Unknown tool: {name}")

        arguments = params.get("arguments") or {}
        logger.debug("http.tool_call", tool=name)
        try:
            result = await self.tool_registry[name](**arguments)
        except Exception as e:
            logger.error("http.tool_error", tool=name, error=str(e), exc_info=True)
            raise JsonRpcError(METHOD_NOT_FOUND, f"Tool execution failed: {e}") from e

        response: dict[str, Any] = {
            "content": [{"type": "text", "text": json.dumps(result, default=str)}]
        }
        if _failed(result):
            response["isError"] = True
        return response

    async def _handle_legacy(self, request: Request, body: dict[str, Any]) -> JSONResponse:
        """Flat calls: ``{"tool": name, "arguments": {...}}``."""
        try:
            authorized = self._authorized(request)
        except ConfigurationError as e:
            logger.error("http.config_error", error=str(e))
            return JSONResponse(
                {"success": False, "error": f"Configuration error: {e}"}, status_code=500
            )
        if not authorized:
            return JSONResponse(
                {"success": False, "error": "Authentication required. Provide X-API-Key header."},
                status_code=401,
            )

        tool_name = body.get("tool")
        if not tool_name:
            return JSONResponse(
                {"success": False, "error": "Tool name is required"}, status_code=400
            )
        if tool_name not in self.tool_registry:
            logger.warning("http.unknown_tool", tool=tool_name)
            return JSONResponse(
                {"success": False, "error": f"Unknown tool: {tool_name}"}, status_code=400
            )

        arguments = body.get("arguments") or {}
        try:
            result = await self.tool_registry[tool_name](**arguments)
        except TypeError as e:
            logger.warning("http.invalid_arguments", tool=tool_name, error=str(e))
            return JSONResponse(
                {"success": False, "error": f"Invalid arguments for {tool_name}: {e}"},
                status_code=400,
            )
        except Exception as e:
            logger.error("http.tool_error", tool=tool_name, error=str(e), exc_info=True)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        failed = _failed(result)
        payload = {"success": not failed, "tool": tool_name, "result": result}
        if "jsonrpc" in body:
            payload = _rpc_result(body.get("id"), payload)
        return JSONResponse(payload, status_code=400 if failed else 200)

    def create_app(self) -> Starlette:
        """Create the ASGI application with routes and middleware."""
        routes = [
            Route("/health", self.health_handler, methods=["GET"]),
            Route("/api/mcp", self.mcp_handler, methods=["POST"]),
            Route("/api/mcp", self.list_tools_handler, methods=["GET"]),
            Route("/mcp", self.mcp_handler, methods=["POST"]),
            Route("/mcp", self.list_tools_handler, methods=["GET"]),
        ]

        middleware = [
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            )
        ]

        return Starlette(routes=routes, middleware=middleware)

    async def run(self) -> None:
        """Run the HTTP server until uvicorn receives a shutdown signal."""
        import uvicorn

        config = uvicorn.Config(
            self.create_app(),
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)

        logger.info("http.server_starting", host=self.host, port=self.port)
        try:
            await self.factory.initialize()
            await server.serve()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close the storage and cache backends."""
        logger.info("http.shutting_down")
        try:
            await self.factory.close()
            logger.info("http.services_closed")
        except Exception as e:
            logger.error("http.services_close_failed", error=str(e))
        logger.info("http.shutdown_complete")
