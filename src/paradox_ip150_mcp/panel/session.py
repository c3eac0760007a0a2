"""Login / logout handshake with the IP150 module and the panel behind it.

The login is a fixed sequence of seven request/reply exchanges. Each state
of :class:`SessionState` names the exchange that leaves it; the transition
table below drives :meth:`HandshakeSession.login` one step at a time.

Steps 2, 3 and 5 are undocumented IP module exchanges. Their replies are
read and discarded, but the module will not pass panel traffic through
without them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..protocol.commands import (
    ModuleCommand,
    build_init_communication,
    build_login_confirmation,
    build_logout,
    build_module_login,
    build_probe,
    build_serial_init,
)
from ..protocol.errors import AuthenticationError, NoResponseError, SessionStateError
from ..protocol.parser import (
    UNKNOWN_PANEL,
    LoginResult,
    SerialInitResponse,
    is_login_confirmed,
    is_module_login_ack,
    parse_init_communication,
    parse_serial_init,
)
from ..transport.port import TransportPort
from ..transport.reader import receive_packet, receive_raw

logger = logging.getLogger(__name__)

Step = Callable[["TransportPort", "LoginContext"], bool]


class SessionState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    AUTHENTICATING = "authenticating"
    NEGOTIATING_SERIAL = "negotiating_serial"
    INITIALIZING_COMM = "initializing_comm"
    AWAITING_PANEL_INIT = "awaiting_panel_init"
    CONFIRMING = "confirming"
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"


@dataclass
class LoginContext:
    """Values carried from one login step to the next.

    Lives only for the duration of a single ``login()`` call.
    """

    password: str
    panel_type: str = UNKNOWN_PANEL
    serial_init: SerialInitResponse | None = None


def _module_login(port: TransportPort, ctx: LoginContext) -> bool:
    port.write(build_module_login(ctx.password))
    if not is_module_login_ack(receive_packet(port)):
        raise AuthenticationError("IP150 module rejected the password")
    return True


def _probe(command: ModuleCommand) -> Step:
    def step(port: TransportPort, ctx: LoginContext) -> bool:
        port.write(build_probe(command))
        receive_raw(port)
        return True
    return step


def _init_communication(port: TransportPort, ctx: LoginContext) -> bool:
    port.write(build_init_communication())
    ctx.panel_type = parse_init_communication(receive_packet(port)).panel_type
    return True


def _serial_init(port: TransportPort, ctx: LoginContext) -> bool:
    port.write(build_serial_init())
    serial_init = parse_serial_init(receive_packet(port))
    if serial_init is None:
        raise NoResponseError("Incomplete reply to the serial init request")
    ctx.serial_init = serial_init
    return True


def _confirm(port: TransportPort, ctx: LoginContext) -> bool:
    port.write(build_login_confirmation(ctx.serial_init))
    return is_login_confirmed(receive_packet(port))


# state -> (next state, step that performs the transition)
LOGIN_TRANSITIONS: dict[SessionState, tuple[SessionState, Step]] = {
    SessionState.IDLE: (SessionState.PROBING, _module_login),
    SessionState.PROBING: (SessionState.AUTHENTICATING, _probe(ModuleCommand.PROBE_F2)),
    SessionState.AUTHENTICATING: (SessionState.NEGOTIATING_SERIAL, _probe(ModuleCommand.PROBE_F3)),
    SessionState.NEGOTIATING_SERIAL: (SessionState.INITIALIZING_COMM, _init_communication),
    SessionState.INITIALIZING_COMM: (SessionState.AWAITING_PANEL_INIT, _probe(ModuleCommand.PROBE_F8)),
    SessionState.AWAITING_PANEL_INIT: (SessionState.CONFIRMING, _serial_init),
    SessionState.CONFIRMING: (SessionState.LOGGED_IN, _confirm),
}


class HandshakeSession:
    """Authenticated session over an open transport.

    Usage::

        session = HandshakeSession(conn)
        result = session.login("paradox")
        if result.success:
            ...
            session.logout()
        conn.close()

    The transport is owned by the session for its whole lifetime and must
    not be read or written by anything else while a call is in progress.
    """

    def __init__(self, port: TransportPort) -> None:
        self._port = port
        self.state = SessionState.IDLE
        self._panel_type: str | None = None

    @property
    def port(self) -> TransportPort:
        return self._port

    @property
    def logged_in(self) -> bool:
        return self.state is SessionState.LOGGED_IN

    @property
    def panel_type(self) -> str | None:
        """Panel type captured by the last successful login."""
        return self._panel_type

    def login(self, password: str) -> LoginResult:
        """Run the full login handshake.

        Returns:
            ``LoginResult(success=True, panel_type=...)`` once the panel
            confirms, or ``success=False`` when the panel declines the final
            confirmation. The session is back in ``IDLE`` after a failure.

        Raises:
            SessionStateError: If the session is not ``IDLE``.
            AuthenticationError: If the IP module rejects the password.
            NoResponseError: If a required reply never arrives.
            FramingError: If a reply is malformed.
            TransportError: If the connection fails.
        """
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot log in from state {self.state.value}")

        ctx = LoginContext(password=password)
        try:
            while self.state in LOGIN_TRANSITIONS:
                next_state, step = LOGIN_TRANSITIONS[self.state]
                if not step(self._port, ctx):
                    logger.info("Panel declined the login confirmation")
                    self.state = SessionState.IDLE
                    return LoginResult(success=False, panel_type=ctx.panel_type)
                logger.debug("Login %s -> %s", self.state.value, next_state.value)
                self.state = next_state
        except BaseException:
            self.state = SessionState.IDLE
            raise

        self._panel_type = ctx.panel_type
        logger.info("Logged in to panel %s", ctx.panel_type)
        return LoginResult(success=True, panel_type=ctx.panel_type)

    def logout(self) -> None:
        """Tell the panel we are leaving. No reply is awaited.

        Raises:
            SessionStateError: If the session is not logged in.
        """
        if self.state is not SessionState.LOGGED_IN:
            raise SessionStateError(f"Cannot log out from state {self.state.value}")
        self._port.write(build_logout())
        self.state = SessionState.LOGGED_OUT
        logger.info("Logged out")
