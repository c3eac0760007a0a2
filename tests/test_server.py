"""Tests for the MCP tool functions, with FastMCP and the panel mocked out."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from unittest.mock import MagicMock, patch

from paradox_ip150_mcp.protocol.commands import build_logout
from paradox_ip150_mcp.protocol.errors import InvalidArgumentError
from paradox_ip150_mcp.transport.tcp_connection import ConnectionInfo

from fakes import ScriptedPort, login_replies


class FakeConnection(ScriptedPort):
    """ScriptedPort with the TCPConnection lifecycle methods."""

    def __init__(self, host, port, **kwargs):
        super().__init__(login_replies())
        self.info = ConnectionInfo(host=host, port=port)
        self.connected = False
        self.closed = False

    def open(self):
        self.connected = True
        return self.info

    def close(self):
        self.connected = False
        self.closed = True


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch.dict(sys.modules, {}):
        with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
            # Remove cached server module so it re-imports with our mock
            sys.modules.pop("paradox_ip150_mcp.server", None)
            import paradox_ip150_mcp.server as server_mod

    return server_mod


def test_connect_and_disconnect():
    server = _get_server_module()
    created = []

    def factory(host, port, **kwargs):
        conn = FakeConnection(host, port, **kwargs)
        created.append(conn)
        return conn

    with patch.object(server, "TCPConnection", side_effect=factory):
        result = server.connect(host="192.168.1.50", port=10000, password="1234")

    assert result["connected"] is True
    assert result["panel_type"] == "EVO192"
    info = server.get_panel_info()
    assert info["logged_in"] is True
    assert info["host"] == "192.168.1.50"

    again = server.connect(host="192.168.1.50")
    assert again["message"] == "Already connected"
    assert len(created) == 1

    assert server.disconnect() == {"disconnected": True}
    conn = created[0]
    assert conn.written[-1] == build_logout()
    assert conn.closed
    assert server.get_panel_info()["logged_in"] is False


def test_connect_login_declined_closes_socket():
    server = _get_server_module()
    conn = FakeConnection("10.0.0.2", 10000)
    conn.replies[-1] = login_replies(confirmation=0x70)[-1]

    with patch.object(server, "TCPConnection", return_value=conn):
        result = server.connect(host="10.0.0.2", password="1234")

    assert result["connected"] is False
    assert conn.closed
    assert server.get_panel_info()["logged_in"] is False


def test_connect_without_host(monkeypatch):
    monkeypatch.delenv("PARADOX_IP150_HOST", raising=False)
    server = _get_server_module()
    assert "error" in server.connect()


def test_disconnect_when_not_connected():
    server = _get_server_module()
    assert server.disconnect() == {"disconnected": True}


def test_tools_require_login():
    server = _get_server_module()
    try:
        server.read_ram()
    except RuntimeError as e:
        assert "connect" in str(e)
    else:
        raise AssertionError("read_ram should require a logged-in session")


def test_get_label_caches_result():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_label.return_value = "Front Door"

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.get_label("zone", 1)

    assert result == {"kind": "zone", "number": 1, "label": "Front Door"}
    cache = json.loads(server.resource_label_cache())
    assert cache == {"zone": [{"number": 1, "label": "Front Door"}]}


def test_get_label_out_of_range():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_label.side_effect = InvalidArgumentError("Invalid record number 300")

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.get_label("zone", 300)

    assert "error" in result


def test_get_label_no_reply():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_label.return_value = None

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.get_label("door", 1)

    assert result["label"] is None
    assert json.loads(server.resource_label_cache()) == {}


def test_list_labels_reads_each_record():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_label.side_effect = ["Office", None, "Hall"]

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.list_labels("partition", 1, 3)

    assert [entry["label"] for entry in result["labels"]] == ["Office", None, "Hall"]
    assert reader.read_label.call_count == 3


def test_list_labels_bad_range():
    server = _get_server_module()
    assert "error" in server.list_labels("partition", 1, 9)
    assert "error" in server.list_labels("keypad")


def test_list_labels_reversed_range_is_rejected():
    server = _get_server_module()
    reader = MagicMock()

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.list_labels("partition", 5, 2)

    assert "error" in result
    reader.read_label.assert_not_called()


def test_read_ram_formats_hex():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_ram.return_value = b"\x01\x02\xAB"

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.read_ram(1, 3)

    assert result == {"block": 1, "length": 3, "data": "01 02 AB"}


def test_read_eeprom_no_reply():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_eeprom.return_value = None

    with patch.object(server, "_get_reader", return_value=reader):
        result = server.read_eeprom(0x430)

    assert result == {"error": "No response from panel"}


def test_read_eeprom_invalid_block():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_eeprom.side_effect = InvalidArgumentError("Invalid block number")

    with patch.object(server, "_get_reader", return_value=reader):
        assert "error" in server.read_eeprom(0x430, 16, 16)


def test_get_panel_date():
    server = _get_server_module()
    reader = MagicMock()
    reader.read_panel_date.return_value = datetime(2024, 3, 15, 13, 45, 30)

    with patch.object(server, "_get_reader", return_value=reader):
        assert server.get_panel_date() == {"panel_date": "2024-03-15 13:45:30"}


def test_label_kind_catalog():
    server = _get_server_module()
    catalog = json.loads(server.resource_label_kinds())
    assert set(catalog) == {"zone", "partition", "user", "door", "module"}
    assert catalog["user"]["secondary_start"] == 257


def test_audit_prompt_mentions_kind():
    server = _get_server_module()
    assert 'kind="door"' in server.audit_labels("door")
