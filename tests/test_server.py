"""
Tests for the server entry points without starting a transport.
"""

import json

import pytest
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.testclient import TestClient

from nuki_bridge.actions import server


@pytest.fixture
def empty_env(monkeypatch):
    for key in (
        "NUKI_API_TOKEN",
        "NUKI_SMARTLOCK_ID",
        "NUKI_OPENER_ID",
        "NUKI_API_BASE_URL",
        "NUKI_LOCALE",
        "NUKI_VERIFICATION_PROFILE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def http_client(empty_env):
    app = Starlette(
        routes=[
            Route(
                "/api/{operation}", server.http_operation, methods=["GET", "POST"]
            )
        ]
    )
    return TestClient(app)


def tool_function(tool):
    # depending on the fastmcp release, @mcp.tool returns the function or a tool wrapper
    return getattr(tool, "fn", tool)


class TestServer:
    """Test the MCP tool entry points."""

    def test_operation_lists_split_by_family(self):
        """Test that every operation belongs to exactly one tool."""
        assert "lock" in server.LOCK_OPERATIONS
        assert "lock_status" in server.LOCK_OPERATIONS
        assert "electric_strike" in server.OPENER_OPERATIONS
        assert not set(server.LOCK_OPERATIONS) & set(server.OPENER_OPERATIONS)

    @pytest.mark.asyncio
    async def test_missing_configuration_is_reported(self, empty_env):
        """Test that a missing token yields a configuration error envelope."""
        envelope = await server._run("lock")

        assert envelope["ok"] is False
        assert envelope["error"]["message_key"] == "configuration-missing"

    @pytest.mark.asyncio
    async def test_unknown_operation_is_reported(self, empty_env):
        """Test that an unknown operation yields an error envelope."""
        envelope = await server._run("teleport")

        assert envelope["ok"] is False
        assert envelope["error"]["message_key"] == "unknown-operation"

    @pytest.mark.asyncio
    async def test_tool_call_keeps_stdout_clean(self, empty_env, capsys):
        """Test that tool calls never write to stdout, which carries the stdio transport."""
        envelope = await tool_function(server.lock_action)("lock")

        captured = capsys.readouterr()
        assert envelope["ok"] is False
        assert captured.out == ""
        lines = [
            json.loads(line)
            for line in captured.err.splitlines()
            if line.startswith("{")
        ]
        assert any(line["context"] == "dispatch" for line in lines)


class TestHttpRoute:
    """Test the GET/POST route and its status-code mapping."""

    def test_get_on_action_is_405(self, http_client):
        """Test that GET on a state-changing operation is rejected with 405."""
        response = http_client.get("/api/lock")

        assert response.status_code == 405
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["message_key"] == "method-not-allowed"

    def test_post_on_status_is_405(self, http_client):
        """Test that POST on a status query is rejected with 405."""
        response = http_client.post("/api/lock_status")

        assert response.status_code == 405

    def test_unknown_operation_is_404(self, http_client):
        """Test that an unknown operation name maps to 404."""
        response = http_client.post("/api/teleport")

        assert response.status_code == 404
        assert response.json()["error"]["message_key"] == "unknown-operation"

    def test_other_failures_are_200_with_ok_false(self, http_client):
        """Test that configuration errors keep status 200 and report through the body."""
        response = http_client.post("/api/lock")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["error"]["stage"] == "config"
