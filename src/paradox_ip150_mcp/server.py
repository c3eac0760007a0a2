"""MCP server entry point for the Paradox IP150 module.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport. All panel access
is read-only.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import ConnectionSettings
from .models.labels import LABEL_LAYOUTS, LabelKind, label_layout
from .models.panel import PanelInfo
from .panel.memory import MemoryReader
from .panel.session import HandshakeSession
from .protocol.errors import InvalidArgumentError, Ip150Error
from .transport.tcp_connection import TCPConnection
from .utils.codec import to_hex

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "paradox-ip150",
    instructions="Read-only access to a Paradox EVO panel through an IP150 module",
)

# Global connection state
_connection: TCPConnection | None = None
_session: HandshakeSession | None = None
_label_cache: dict[str, dict[int, str]] = {}


def _get_reader() -> MemoryReader:
    """Get a memory reader over the logged-in session, raising if there is none."""
    if _session is None or not _session.logged_in:
        raise RuntimeError(
            "Not logged in to the panel. Use the 'connect' tool first."
        )
    return MemoryReader(_session.port)


def _panel_info() -> PanelInfo:
    if _connection is None:
        return PanelInfo()
    return PanelInfo(
        host=_connection.info.host,
        port=_connection.info.port,
        panel_type=(_session.panel_type or "") if _session else "",
        logged_in=_session is not None and _session.logged_in,
    )


def _cache_label(kind: str, number: int, label: str) -> None:
    _label_cache.setdefault(kind, {})[number] = label


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """Connect to the IP150 software port and log in to the panel.

    Missing arguments fall back to the PARADOX_IP150_HOST,
    PARADOX_IP150_PORT and PARADOX_IP150_PASSWORD environment variables.

    Args:
        host: IP150 address.
        port: Software port (default 10000).
        password: IP150 module password.
    """
    global _connection, _session
    if _session is not None and _session.logged_in:
        return {
            "connected": True,
            "message": "Already connected",
            "panel_type": _session.panel_type,
        }

    settings = ConnectionSettings.from_env()
    host = host or settings.host
    if not host:
        return {"error": "No host given and PARADOX_IP150_HOST is not set"}

    conn = TCPConnection(
        host,
        port or settings.port,
        connect_timeout=settings.connect_timeout,
        io_timeout=settings.io_timeout,
    )
    conn.open()
    session = HandshakeSession(conn)
    try:
        result = session.login(password if password is not None else settings.password)
    except Ip150Error:
        conn.close()
        raise

    if not result.success:
        conn.close()
        return {"connected": False, "error": "Login failed", "panel_type": result.panel_type}

    _connection = conn
    _session = session
    _label_cache.clear()
    return {
        "connected": True,
        "host": conn.info.host,
        "port": conn.info.port,
        "panel_type": result.panel_type,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Log out from the panel and close the connection."""
    global _connection, _session
    if _connection is None:
        return {"disconnected": True}
    try:
        if _session is not None and _session.logged_in:
            _session.logout()
    finally:
        _connection.close()
        _connection = None
        _session = None
    return {"disconnected": True}


@mcp.tool()
def get_panel_info() -> dict[str, Any]:
    """Return the connected panel's type and connection details."""
    return _panel_info().to_dict()


# ─── MEMORY TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def read_ram(block: int = 1, length: int = 64) -> dict[str, Any]:
    """Read raw bytes from a panel RAM block.

    Args:
        block: RAM block (1-16).
        length: Bytes to read (1-64).
    """
    reader = _get_reader()
    try:
        data = reader.read_ram(block, length)
    except InvalidArgumentError as e:
        return {"error": str(e)}
    if data is None:
        return {"error": "No response from panel"}
    return {"block": block, "length": len(data), "data": to_hex(data)}


@mcp.tool()
def read_eeprom(address: int, length: int = 16, block: int = 0) -> dict[str, Any]:
    """Read raw bytes from panel EEPROM.

    Args:
        address: Linear EEPROM address (0-0x3FFFF).
        length: Bytes to read (1-64).
        block: EEPROM block (0-15).
    """
    reader = _get_reader()
    try:
        data = reader.read_eeprom(address, block, length)
    except InvalidArgumentError as e:
        return {"error": str(e)}
    if data is None:
        return {"error": "No response from panel"}
    return {"address": f"0x{address:05X}", "length": len(data), "data": to_hex(data)}


@mcp.tool()
def get_panel_date() -> dict[str, Any]:
    """Read the panel's clock."""
    panel_date = _get_reader().read_panel_date()
    if panel_date is None:
        return {"error": "Could not read the panel clock"}
    return {"panel_date": panel_date.isoformat(sep=" ")}


# ─── LABEL TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def get_label(kind: str, number: int) -> dict[str, Any]:
    """Read one label from EEPROM.

    Args:
        kind: zone, partition, user, door or module.
        number: Record number (1-based).
    """
    reader = _get_reader()
    try:
        label = reader.read_label(kind, number)
    except InvalidArgumentError as e:
        return {"error": str(e)}
    if label is None:
        return {"kind": kind, "number": number, "label": None, "error": "No response from panel"}
    _cache_label(kind, number, label)
    return {"kind": kind, "number": number, "label": label}


@mcp.tool()
def list_labels(kind: str, start: int = 1, end: int | None = None) -> dict[str, Any]:
    """Read a range of labels. Records the panel does not answer for are
    reported with a null label.

    Args:
        kind: zone, partition, user, door or module.
        start: First record number (default 1).
        end: Last record number (default: last record of that kind).
    """
    try:
        layout = label_layout(kind)
    except InvalidArgumentError as e:
        return {"error": str(e)}
    if end is None:
        end = layout.count
    if start < 1 or end > layout.count or start > end:
        return {"error": f"Record range must be ascending within 1-{layout.count}"}

    reader = _get_reader()
    labels = []
    for number in range(start, end + 1):
        label = reader.read_label(kind, number)
        if label is not None:
            _cache_label(kind, number, label)
        labels.append({"number": number, "label": label})

    return {"kind": kind, "labels": labels}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("paradox://panel/info")
def resource_panel_info() -> str:
    """Panel type and connection endpoint."""
    return json.dumps(_panel_info().to_dict())


@mcp.resource("paradox://panel/status")
def resource_panel_status() -> str:
    """Connection and login state."""
    return json.dumps({
        "connected": _connection is not None and _connection.connected,
        "session_state": _session.state.value if _session else None,
    })


@mcp.resource("paradox://labels/cache")
def resource_label_cache() -> str:
    """Labels read so far in this session."""
    return json.dumps({
        kind: [{"number": n, "label": labels[n]} for n in sorted(labels)]
        for kind, labels in _label_cache.items()
    })


@mcp.resource("paradox://catalog/label-kinds")
def resource_label_kinds() -> str:
    """Label kinds with their EEPROM layout."""
    return json.dumps({kind.value: layout.to_dict() for kind, layout in LABEL_LAYOUTS.items()})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def audit_labels(kind: str = "zone") -> str:
    """Guide the AI through reviewing a panel's labels for gaps and typos.

    Args:
        kind: Label kind to review.
    """
    kinds = ", ".join(k.value for k in LabelKind)
    return f"""Review the {kind} labels programmed in the panel.
Steps:
- Use get_panel_info to confirm a panel is connected, otherwise connect first
- Use list_labels with kind="{kind}" to read the labels
- Point out records with empty, default or duplicate labels
- Point out inconsistent naming (abbreviations, capitalization)

Valid label kinds: {kinds}.
This server is read-only; suggest changes but do not claim to apply them."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
