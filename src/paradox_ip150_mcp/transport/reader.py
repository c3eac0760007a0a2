"""Receive helpers: raw reads, framed reads and the command-matching poll loop."""

from __future__ import annotations

import logging
import time

from ..protocol.errors import NoResponseError
from ..protocol.framing import Packet, split_packets
from ..utils.codec import high_nibble
from .port import TransportPort

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 2048
MAX_RETRIES = 3
RETRY_DELAY_S = 0.1


def receive_raw(port: TransportPort, max_bytes: int = READ_BUFFER_SIZE) -> bytes:
    """Read whatever the module has sent, without framing it."""
    return port.read(max_bytes)


def receive_packet(port: TransportPort) -> Packet:
    """Read once and return the first packet in the read.

    Raises:
        NoResponseError: If the read returned nothing.
        FramingError: If the bytes read are not well-formed packets.
    """
    data = receive_raw(port)
    if not data:
        raise NoResponseError("No reply received from IP150 module")
    return split_packets(data)[0]


def await_command(
    port: TransportPort,
    command: int,
    max_retries: int = MAX_RETRIES,
    retry_delay: float = RETRY_DELAY_S,
) -> bytes | None:
    """Poll until a reply for ``command`` arrives, and return its body.

    Each pass reads whatever is available and scans the packets in arrival
    order for one whose body starts with ``command`` in its high nibble.
    Packets that do not match are dropped. Between passes the loop sleeps
    ``retry_delay`` seconds; it keeps going while data is pending or retries
    remain.

    Args:
        port: Open transport.
        command: Command nibble; full command bytes above 0xF are reduced
            to their high nibble.
        max_retries: Number of empty passes tolerated.
        retry_delay: Seconds to sleep between passes.

    Returns:
        The matching packet's body (header removed), or None if the retries
        ran out first.

    Raises:
        FramingError: If a read holds malformed data.
    """
    if command > 0xF:
        command = high_nibble(command)

    retries = 0
    while port.data_available() or retries < max_retries:
        if port.data_available():
            for packet in split_packets(receive_raw(port)):
                if packet.command == command:
                    return packet.body

        # Give the panel time to answer
        time.sleep(retry_delay)
        retries += 1

    logger.debug("No reply for command 0x%X after %d retries", command, retries)
    return None
