"""Tests for the login / logout handshake."""

import pytest

from paradox_ip150_mcp.panel.session import (
    LOGIN_TRANSITIONS,
    HandshakeSession,
    SessionState,
)
from paradox_ip150_mcp.protocol.commands import build_logout, build_module_login
from paradox_ip150_mcp.protocol.errors import (
    AuthenticationError,
    FramingError,
    NoResponseError,
    SessionStateError,
)
from paradox_ip150_mcp.protocol.framing import HEADER_SIZE
from paradox_ip150_mcp.utils.codec import checksum

from fakes import ScriptedPort, login_replies, make_packet


def test_transition_table_walks_idle_to_logged_in():
    """Following the table from IDLE visits every login state once."""
    state = SessionState.IDLE
    visited = [state]
    while state in LOGIN_TRANSITIONS:
        state = LOGIN_TRANSITIONS[state][0]
        visited.append(state)
    assert visited == [
        SessionState.IDLE,
        SessionState.PROBING,
        SessionState.AUTHENTICATING,
        SessionState.NEGOTIATING_SERIAL,
        SessionState.INITIALIZING_COMM,
        SessionState.AWAITING_PANEL_INIT,
        SessionState.CONFIRMING,
        SessionState.LOGGED_IN,
    ]


def test_login_succeeds():
    port = ScriptedPort(login_replies())
    session = HandshakeSession(port)

    result = session.login("1234")

    assert result.success
    assert result.panel_type == "EVO192"
    assert session.logged_in
    assert session.panel_type == "EVO192"
    assert session.state is SessionState.LOGGED_IN
    assert len(port.written) == 7
    assert port.reads == 7
    assert port.written[0] == build_module_login("1234")


def test_login_requests_in_order():
    port = ScriptedPort(login_replies())
    HandshakeSession(port).login("1234")
    module_commands = [request[5] for request in port.written]
    assert module_commands == [0xF0, 0xF2, 0xF3, 0x00, 0xF8, 0x00, 0x00]
    assert port.written[3][HEADER_SIZE] == 0x72
    assert port.written[5][HEADER_SIZE] == 0x5F


def test_confirmation_echoes_serial_init():
    port = ScriptedPort(login_replies())
    HandshakeSession(port).login("1234")
    body = port.written[6][HEADER_SIZE:]
    assert body[1] == 0x10
    assert body[4:8] == bytes([0x05, 0x07, 0x12, 0x03])
    assert body[8:10] == b"\xAB\xCD"
    assert body[17:21] == b"\x01\x02\x03\x04"
    assert body[21:30] == bytes(range(0x30, 0x39))
    assert body[-1] == checksum(body[:-1])


def test_wrong_password_aborts():
    port = ScriptedPort(login_replies(login_flags=0x08))
    session = HandshakeSession(port)
    with pytest.raises(AuthenticationError):
        session.login("bad")
    assert session.state is SessionState.IDLE
    assert len(port.written) == 1


def test_declined_confirmation_returns_false():
    port = ScriptedPort(login_replies(confirmation=0x70))
    session = HandshakeSession(port)

    result = session.login("1234")

    assert not result.success
    assert result.panel_type == "EVO192"
    assert not session.logged_in
    assert session.panel_type is None
    assert session.state is SessionState.IDLE


def test_missing_reply_raises():
    port = ScriptedPort(login_replies()[:3])
    session = HandshakeSession(port)
    with pytest.raises(NoResponseError):
        session.login("1234")
    assert session.state is SessionState.IDLE


def test_short_serial_init_reply_raises():
    replies = login_replies()
    replies[5] = make_packet(b"\x00" * 10)
    session = HandshakeSession(ScriptedPort(replies))
    with pytest.raises(NoResponseError):
        session.login("1234")


def test_garbled_reply_raises_framing_error():
    replies = login_replies()
    replies[3] = b"\x00" * 32
    session = HandshakeSession(ScriptedPort(replies))
    with pytest.raises(FramingError):
        session.login("1234")
    assert session.state is SessionState.IDLE


def test_probe_replies_are_not_framed():
    """Whatever the module answers to a probe is accepted."""
    replies = login_replies()
    replies[1] = b"\x01\x02\x03"
    replies[4] = b""
    result = HandshakeSession(ScriptedPort(replies)).login("1234")
    assert result.success


def test_login_twice_raises():
    session = HandshakeSession(ScriptedPort(login_replies()))
    session.login("1234")
    with pytest.raises(SessionStateError):
        session.login("1234")


def test_logout_is_fire_and_forget():
    port = ScriptedPort(login_replies())
    session = HandshakeSession(port)
    session.login("1234")
    reads = port.reads

    session.logout()

    assert port.written[-1] == build_logout()
    assert port.reads == reads
    assert session.state is SessionState.LOGGED_OUT
    assert not session.logged_in


def test_logout_requires_login():
    session = HandshakeSession(ScriptedPort())
    with pytest.raises(SessionStateError):
        session.logout()


def test_cannot_log_in_after_logout():
    session = HandshakeSession(ScriptedPort(login_replies()))
    session.login("1234")
    session.logout()
    with pytest.raises(SessionStateError):
        session.login("1234")


class _DroppingPort(ScriptedPort):
    """Connection that resets after a fixed number of reads."""

    def __init__(self, replies, fail_on_read):
        super().__init__(replies)
        self.fail_on_read = fail_on_read

    def read(self, max_bytes: int) -> bytes:
        if self.reads + 1 == self.fail_on_read:
            self.reads += 1
            raise ConnectionResetError("peer reset")
        return super().read(max_bytes)


def test_connection_reset_mid_login_returns_to_idle():
    session = HandshakeSession(_DroppingPort(login_replies(), fail_on_read=4))
    with pytest.raises(ConnectionResetError):
        session.login("1234")
    assert session.state is SessionState.IDLE
    assert not session.logged_in


def test_login_retry_after_connection_reset():
    port = _DroppingPort(login_replies(), fail_on_read=2)
    session = HandshakeSession(port)
    with pytest.raises(ConnectionResetError):
        session.login("1234")

    port.replies.clear()
    port.replies.extend(login_replies())
    port.fail_on_read = 0

    assert session.login("1234").success
