"""TCP connection to the IP150 software port.

The IP150 listens for Winload/BabyWare-style clients on its software port
(10000 by default). One client at a time; the module drops the socket when
another client logs in.
"""

from __future__ import annotations

import logging
import select
import socket
from dataclasses import dataclass

from ..protocol.errors import TransportError
from ..utils.codec import to_hex

logger = logging.getLogger(__name__)

DEFAULT_PORT = 10000
CONNECT_TIMEOUT_S = 5.0
IO_TIMEOUT_S = 2.0
READ_BUFFER_SIZE = 2048


@dataclass
class ConnectionInfo:
    """Endpoint details of an open connection."""

    host: str = ""
    port: int = DEFAULT_PORT
    local_address: str = ""


class TCPConnection:
    """Manages the TCP socket to the IP150 module.

    Usage::

        conn = TCPConnection("192.168.1.50")
        conn.open()
        conn.write(request_bytes)
        reply = conn.read()
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        connect_timeout: float = CONNECT_TIMEOUT_S,
        io_timeout: float = IO_TIMEOUT_S,
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._io_timeout = io_timeout
        self._sock: socket.socket | None = None
        self._info = ConnectionInfo(host=host, port=port)

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    def open(self) -> ConnectionInfo:
        """Connect to the module.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self._sock is not None:
            return self._info

        try:
            sock = socket.create_connection(
                (self._host, self._port), timeout=self._connect_timeout
            )
        except OSError as e:
            raise TransportError(
                f"Could not connect to IP150 at {self._host}:{self._port}: {e}"
            ) from e

        sock.settimeout(self._io_timeout)
        self._sock = sock
        local_host, local_port = sock.getsockname()[:2]
        self._info = ConnectionInfo(
            host=self._host,
            port=self._port,
            local_address=f"{local_host}:{local_port}",
        )
        logger.info("Connected to IP150 at %s:%s", self._host, self._port)
        return self._info

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected")

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("Not connected to IP150 module")
        return self._sock

    def write(self, data: bytes) -> int:
        """Send all of ``data``.

        Raises:
            TransportError: If not connected or the send fails.
        """
        sock = self._require_socket()
        logger.debug("TX %s", to_hex(data))
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Send failed: {e}") from e
        return len(data)

    def read(self, max_bytes: int = READ_BUFFER_SIZE) -> bytes:
        """Read up to ``max_bytes``; returns ``b""`` when the read times out.

        Raises:
            TransportError: If not connected, the peer closed the
                connection, or the socket failed.
        """
        sock = self._require_socket()
        try:
            data = sock.recv(max_bytes)
        except socket.timeout:
            return b""
        except OSError as e:
            raise TransportError(f"Receive failed: {e}") from e
        if not data:
            raise TransportError("Connection closed by IP150 module")
        logger.debug("RX %s", to_hex(data))
        return data

    def data_available(self) -> bool:
        """Whether a read would return immediately."""
        sock = self._require_socket()
        try:
            readable, _, _ = select.select([sock], [], [], 0)
        except (OSError, ValueError) as e:
            raise TransportError(f"Socket poll failed: {e}") from e
        return bool(readable)

    def __enter__(self) -> TCPConnection:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
