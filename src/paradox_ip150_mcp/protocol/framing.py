"""Packet builder and splitter for the IP150 software port.

Packet layout::

    +------+--------+------+------+-------+---------+------+------+--------------+--------------------+
    | Sync | Length | 0x00 | Type | Flags | Command | 0x00 | Mode | Fill (0xEE)  |        Body        |
    | 0xAA | 1 byte |      |      |       |         |      |      | to 16 bytes  | length + 0xEE pad  |
    +------+--------+------+------+-------+---------+------+------+--------------+--------------------+

- Length: body length before padding (low byte)
- Type: 0x03 for requests handled by the IP module itself, 0x04 for
  requests passed through to the panel
- Flags: 0x08 on requests; replies carry their acknowledgement here
- Command: IP module command (login, probes) or 0x00 for pass-through
- Mode: 0x0A up to the serial init, 0x14 from the login confirmation on
- Body: panel message; the last byte is an 8-bit sum of the preceding bytes

A single socket read may hold several packets back to back (for example a
live event pushed between a request and its reply), each possibly padded
with 0xEE bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.codec import high_nibble, pad_right, to_hex
from .errors import FramingError

HEADER_SIZE = 16
SYNC_BYTE = 0xAA
FILL_BYTE = 0xEE

MESSAGE_TYPE_MODULE = 0x03
MESSAGE_TYPE_PANEL = 0x04
REQUEST_FLAGS = 0x08
MODE_HANDSHAKE = 0x0A
MODE_SESSION = 0x14

OFF_LENGTH = 1
OFF_FLAGS = 4


@dataclass
class Packet:
    """One framed message: a 16-byte header and its (padded) body."""

    header: bytes
    body: bytes

    @property
    def declared_length(self) -> int:
        return self.header[OFF_LENGTH]

    @property
    def command(self) -> int | None:
        """High nibble of the first body byte, or None for an empty body."""
        if not self.body:
            return None
        return high_nibble(self.body[0])

    def to_bytes(self) -> bytes:
        return self.header + self.body

    def __repr__(self) -> str:
        return (
            f"Packet(header={to_hex(self.header)}, "
            f"body={to_hex(self.body) if self.body else '(empty)'})"
        )


def build_header(
    length: int,
    message_type: int = MESSAGE_TYPE_PANEL,
    command: int = 0x00,
    mode: int = MODE_SESSION,
) -> bytes:
    """Build a 16-byte request header.

    Args:
        length: Body length before padding (only the low byte is sent).
        message_type: ``MESSAGE_TYPE_MODULE`` or ``MESSAGE_TYPE_PANEL``.
        command: IP module command byte.
        mode: ``MODE_HANDSHAKE`` or ``MODE_SESSION``.
    """
    prefix = bytes([
        SYNC_BYTE, length & 0xFF, 0x00, message_type,
        REQUEST_FLAGS, command, 0x00, mode,
    ])
    return pad_right(prefix, HEADER_SIZE, FILL_BYTE)


def build_packet(header: bytes, body: bytes = b"") -> bytes:
    """Concatenate a header and body into wire bytes."""
    if len(header) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(header)}")
    return bytes(header) + bytes(body)


def split_packets(data: bytes) -> list[Packet]:
    """Split a raw read into the packets it contains, in arrival order.

    Trailing 0xEE bytes after a body's declared length are treated as that
    body's padding and kept with it.

    Raises:
        FramingError: If a header is missing or truncated, or a body is
            shorter than its declared length.
    """
    packets: list[Packet] = []
    pos = 0
    end = len(data)

    while pos < end:
        if end - pos < HEADER_SIZE or data[pos] != SYNC_BYTE:
            raise FramingError(
                f"No 16 byte header at offset {pos} ({end - pos} bytes left)"
            )

        header = bytes(data[pos : pos + HEADER_SIZE])
        length = header[OFF_LENGTH]
        pos += HEADER_SIZE

        if end - pos < length:
            raise FramingError(
                f"Unexpected end of data: body declares {length} bytes, "
                f"{end - pos} available"
            )

        # Absorb block padding
        while pos + length < end and data[pos + length] == FILL_BYTE:
            length += 1

        packets.append(Packet(header=header, body=bytes(data[pos : pos + length])))
        pos += length

    return packets
