"""MCP server entry point for ipmitool-backed IPMI access.

Exposes tools via the Model Context Protocol using the official Python
MCP SDK with stdio transport. The Serial-over-LAN console is not offered
here since stdio carries the protocol itself.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import FramingError, ToolInvocationError
from .models.connection import Connection
from .protocol.commands import (
    CHASSIS_ACTION_MAP,
    build_chassis_control,
    build_get_chassis_status,
    build_get_device_id,
    build_raw,
)
from .protocol.hexargs import from_hex_string
from .protocol.parser import ChassisStatusResponse, DeviceIdResponse
from .transport.tool_transport import ToolTransport, TransportState

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ipmitool",
    instructions="Send IPMI commands to a baseboard management controller through ipmitool",
)

# Global connection state
_transport: ToolTransport | None = None


def _get_transport() -> ToolTransport:
    """Get the open transport, raising if not connected."""
    if _transport is None or _transport.state is not TransportState.OPEN:
        raise RuntimeError(
            "Not connected to a BMC. Use the 'connect' tool first."
        )
    return _transport


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    hostname: str,
    username: str,
    password: str,
    interface: str = "",
    port: int = 0,
    path: str = "",
) -> dict[str, Any]:
    """Prepare a transport to a BMC.

    No command is sent yet; ipmitool is run once per tool call.

    Args:
        hostname: BMC host name or address.
        username: IPMI user.
        password: IPMI password (handed to ipmitool through a descriptor).
        interface: ipmitool interface, defaults to lanplus.
        port: RMCP port, 0 for ipmitool's default.
        path: ipmitool executable, defaults to ``ipmitool`` on PATH.
    """
    global _transport
    if _transport is not None and _transport.state is TransportState.OPEN:
        _transport.close()
        _transport = None

    try:
        connection = Connection(
            hostname=hostname,
            username=username,
            password=password,
            interface=interface,
            port=port,
            path=path,
        )
    except ValueError as e:
        return {"error": str(e)}

    transport = ToolTransport(connection)
    transport.open()
    _transport = transport

    result: dict[str, Any] = {"connected": True}
    result.update(connection.to_dict())
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Release the transport and its password file."""
    global _transport
    if _transport is None:
        return {"disconnected": True}
    if _transport.state is TransportState.OPEN:
        _transport.close()
    _transport = None
    return {"disconnected": True}


# ─── COMMAND TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def raw_command(network_function: int, command: int, data: str = "") -> dict[str, Any]:
    """Send an arbitrary IPMI request.

    Args:
        network_function: Network function code (0x00-0x3F).
        command: Command code (0-255).
        data: Request payload as hex, e.g. "01 02" (optional).
    """
    transport = _get_transport()
    try:
        request = build_raw(network_function, command, from_hex_string(data))
        response = transport.send(request)
    except (ValueError, ToolInvocationError) as e:
        return {"error": str(e)}
    return response.to_dict()


@mcp.tool()
def get_device_id() -> dict[str, Any]:
    """Read the BMC's device ID, firmware revision and manufacturer."""
    transport = _get_transport()
    try:
        response = transport.send(build_get_device_id(), DeviceIdResponse)
    except (FramingError, ToolInvocationError) as e:
        return {"error": str(e)}
    return response.to_dict()


@mcp.tool()
def chassis_status() -> dict[str, Any]:
    """Read chassis power state and fault flags."""
    transport = _get_transport()
    try:
        response = transport.send(build_get_chassis_status(), ChassisStatusResponse)
    except (FramingError, ToolInvocationError) as e:
        return {"error": str(e)}
    return response.to_dict()


@mcp.tool()
def chassis_power(action: str) -> dict[str, Any]:
    """Change chassis power state.

    Args:
        action: One of on, off, cycle, reset, diag, soft.
    """
    if action not in CHASSIS_ACTION_MAP:
        return {"error": f"Unknown action '{action}'. Valid: {list(CHASSIS_ACTION_MAP)}"}

    transport = _get_transport()
    try:
        response = transport.send(build_chassis_control(action))
    except (FramingError, ToolInvocationError) as e:
        return {"error": str(e)}
    return {"action": action, "ok": response.ok}


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
