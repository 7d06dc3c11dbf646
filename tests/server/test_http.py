"""Tests for the HTTP transport."""

import json
from pathlib import Path
from typing import Any

import pytest
from starlette.testclient import TestClient

from enhanced_context.catalog import ConfigLoader
from enhanced_context.config import BUNDLED_CONFIG
from enhanced_context.server.http import HttpServer
from enhanced_context.services import ServiceFactory
from enhanced_context.tools import build_tool_registry

AUTH = {"x-api-key": "test-key"}


@pytest.fixture
def http_server(factory: ServiceFactory) -> HttpServer:
    return HttpServer(build_tool_registry(factory), factory)


@pytest.fixture
def client(http_server: HttpServer) -> TestClient:
    return TestClient(http_server.create_app())


def rpc(method: str, params: dict[str, Any] | None = None, request_id: int = 1) -> dict[str, Any]:
    body: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        body["params"] = params
    return body


class TestHealthEndpoint:
    """Test the health check."""

    def test_healthy(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["server"] == "enhanced-context-mcp"
        assert data["version"] == "2.0.0"
        assert data["checks"]["config"] == "ok"
        assert data["checks"]["tools"] == "12 registered"
        assert data["uptime"] >= 0

    def test_degraded_on_broken_config(
        self, tmp_path: Path, factory: ServiceFactory
    ) -> None:
        """A missing configuration directory reports 503."""
        broken = ServiceFactory(factory.settings, config_loader=ConfigLoader(tmp_path))
        client = TestClient(HttpServer({}, broken).create_app())

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["config"].startswith("error:")


class TestToolListing:
    @pytest.mark.parametrize("path", ["/api/mcp", "/mcp"])
    def test_get_lists_tools_without_auth(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        tools = response.json()["tools"]
        assert len(tools) == 12
        load = next(t for t in tools if t["name"] == "load_enhanced_context")
        assert "story" in load["inputSchema"]["properties"]["query_type"]["enum"]

    def test_rpc_tools_list(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json=rpc("tools/list"))

        assert response.status_code == 200
        assert len(response.json()["result"]["tools"]) == 12


class TestJsonRpcProtocol:
    """Test JSON-RPC envelope handling and error codes."""

    def test_invalid_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    def test_non_object_body(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json=[1, 2, 3])

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32600

    def test_wrong_version(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json={"jsonrpc": "1.0", "id": 7, "method": "ping"})

        assert response.status_code == 400
        assert response.json()["id"] == 7
        assert response.json()["error"]["code"] == -32600

    def test_missing_method(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json={"jsonrpc": "2.0", "id": 3})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing method"

    def test_initialize(self, client: TestClient) -> None:
        response = client.post("/mcp", json=rpc("initialize"))

        result = response.json()["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["capabilities"] == {"tools": {}}
        assert result["serverInfo"] == {"name": "enhanced-context-mcp", "version": "2.0.0"}

    def test_ping(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json=rpc("ping", request_id=9))

        assert response.json() == {"jsonrpc": "2.0", "id": 9, "result": {}}

    def test_initialized_notification(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )

        assert response.status_code == 204
        assert response.content == b""

    def test_unknown_method(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json=rpc("resources/list"))

        assert response.status_code == 200
        assert response.json()["error"] == {
            "code": -32601,
            "message": "Method not found: resources/list",
        }


class TestJsonRpcToolCalls:
    """Test tools/call, which requires an API key."""

    def test_requires_api_key(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp", json=rpc("tools/call", {"name": "refresh_agent_cache"})
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == -32001

    def test_blank_api_key_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json=rpc("tools/call", {"name": "refresh_agent_cache"}),
            headers={"x-api-key": "   "},
        )

        assert response.status_code == 401

    def test_call(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json=rpc(
                "tools/call",
                {
                    "name": "analyze_task_intent",
                    "arguments": {"task_statement": "Write unit tests for checkout"},
                },
            ),
            headers=AUTH,
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert "isError" not in result
        payload = json.loads(result["content"][0]["text"])
        assert payload["analysis"]["query_type"] == "testing"

    def test_failed_tool_result_flagged(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json=rpc(
                "tools/call",
                {"name": "load_vishkar_agent", "arguments": {"agent_id": "ghost"}},
            ),
            headers=AUTH,
        )

        result = response.json()["result"]
        assert result["isError"] is True
        assert json.loads(result["content"][0]["text"])["error"]["type"] == "not_found"

    def test_missing_name(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json=rpc("tools/call", {}), headers=AUTH)

        assert response.json()["error"]["code"] == -32602

    def test_unknown_tool(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp", json=rpc("tools/call", {"name": "summon"}), headers=AUTH
        )

        assert response.json()["error"] == {"code": -32601, "message": "Unknown tool: summon"}

    def test_tool_exception(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json=rpc(
                "tools/call", {"name": "refresh_agent_cache", "arguments": {"bogus": 1}}
            ),
            headers=AUTH,
        )

        error = response.json()["error"]
        assert error["code"] == -32601
        assert error["message"].startswith("Tool execution failed:")


class TestLegacyCalls:
    """Test the flat ``{"tool": ..., "arguments": ...}`` convention."""

    def test_success(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json={"tool": "list_context_combinations", "arguments": {"query_type": "story"}},
            headers=AUTH,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["tool"] == "list_context_combinations"
        assert data["result"]["count"] >= 1

    def test_requires_api_key(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json={"tool": "refresh_agent_cache"})

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_tool_name_required(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json={"arguments": {}}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Tool name is required"}

    def test_unknown_tool(self, client: TestClient) -> None:
        response = client.post("/api/mcp", json={"tool": "summon"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown tool: summon"

    def test_bad_arguments(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json={"tool": "refresh_agent_cache", "arguments": {"bogus": 1}},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid arguments for refresh_agent_cache")

    def test_failed_result(self, client: TestClient) -> None:
        response = client.post(
            "/api/mcp",
            json={"tool": "load_enhanced_context", "arguments": {"query_type": "astrology"}},
            headers=AUTH,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["result"]["isError"] is True

    def test_broken_config_is_structured_error(
        self, tmp_path: Path, factory: ServiceFactory
    ) -> None:
        """An unreadable server config yields a JSON error, not an unhandled exception."""
        broken = ServiceFactory(factory.settings, config_loader=ConfigLoader(tmp_path))
        client = TestClient(HttpServer({}, broken).create_app())

        response = client.post(
            "/api/mcp", json={"tool": "refresh_agent_cache"}, headers=AUTH
        )

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"].startswith("Configuration error:")

    def test_jsonrpc_wrapped(self, client: TestClient) -> None:
        """A legacy body carrying ``jsonrpc`` gets a JSON-RPC envelope."""
        response = client.post(
            "/api/mcp",
            json={"jsonrpc": "2.0", "id": 4, "tool": "refresh_agent_cache"},
            headers=AUTH,
        )

        data = response.json()
        assert data["id"] == 4
        assert data["result"]["success"] is True


class TestAuthDisabled:
    def test_calls_allowed_without_key(self, tmp_path: Path, factory: ServiceFactory) -> None:
        config = json.loads((BUNDLED_CONFIG / "server-config.json").read_text())
        config["security"]["enableAuthentication"] = False
        for path in BUNDLED_CONFIG.iterdir():
            (tmp_path / path.name).write_bytes(path.read_bytes())
        (tmp_path / "server-config.json").write_text(json.dumps(config))

        open_factory = ServiceFactory(factory.settings, config_loader=ConfigLoader(tmp_path))
        client = TestClient(
            HttpServer(build_tool_registry(open_factory), open_factory).create_app()
        )

        response = client.post("/api/mcp", json={"tool": "refresh_agent_cache"})

        assert response.status_code == 200
