import logging
import os
import sys
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from nuki_bridge.actions.action_logger import ActionLogger
from nuki_bridge.actions.dispatcher import ActionDispatcher, Operation
from nuki_bridge.actions.errors import UnknownOperation
from nuki_bridge.actions.models import DeviceFamily
from nuki_bridge.actions.settings import NukiConfig

logger = logging.getLogger(__name__)

LOCK_OPERATIONS = [op.operation_name for op in Operation if op.family == DeviceFamily.LOCK]
OPENER_OPERATIONS = [
    op.operation_name for op in Operation if op.family == DeviceFamily.OPENER
]

# Create MCP server
mcp = FastMCP("Nuki Bridge")


def _dispatcher() -> ActionDispatcher:
    # configuration is read once per request; stdout belongs to the stdio transport
    return ActionDispatcher(
        NukiConfig.from_env(),
        logger=ActionLogger(output_format="json", stream=sys.stderr),
    )


@mcp.tool
async def lock_action(operation: str) -> dict[str, Any]:
    """
    Run a smart lock operation and verify that the lock reached the goal state.

    Args:
        operation: One of lock, unlock, unlatch, toggle_lock, lock_status

    Returns:
        Envelope with ``ok`` and either ``result`` (success flag, message,
        state, state name, attempts, timestamp) or ``error``.
    """
    if operation not in LOCK_OPERATIONS:
        logger.warning(f"Lock tool called with non-lock operation: {operation}")
    return await _run(operation)


@mcp.tool
async def opener_action(operation: str) -> dict[str, Any]:
    """
    Run an Opener operation and verify the resulting state or mode.

    Args:
        operation: One of activate_rto, deactivate_rto, toggle_rto,
            activate_continuous_mode, deactivate_continuous_mode,
            toggle_continuous_mode, electric_strike, opener_status
    """
    if operation not in OPENER_OPERATIONS:
        logger.warning(f"Opener tool called with non-opener operation: {operation}")
    return await _run(operation)


async def _run(operation: str) -> dict[str, Any]:
    # MCP tools have no HTTP method; use the one the operation requires
    try:
        method = Operation.parse(operation).method
    except UnknownOperation:
        method = "POST"
    return await _dispatcher().dispatch(operation, method)


@mcp.custom_route("/api/{operation}", methods=["GET", "POST"])
async def http_operation(request: Request) -> JSONResponse:
    """HTTP surface: GET for status queries, POST for actions."""
    operation = request.path_params["operation"]
    envelope = await _dispatcher().dispatch(operation, request.method)
    status_code = 200
    if not envelope["ok"] and "error" in envelope:
        kind = envelope["error"].get("error", {}).get("kind")
        status_code = {"UnknownOperation": 404, "MethodNotAllowed": 405}.get(
            kind, 200
        )
    return JSONResponse(envelope, status_code=status_code)


if __name__ == "__main__":
    print("🚀 Starting Nuki Bridge server...", file=sys.stderr)
    mcp.run(transport=os.getenv("NUKI_BRIDGE_TRANSPORT", "stdio"))
