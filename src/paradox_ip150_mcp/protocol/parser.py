"""Response parsing for IP150 / panel replies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..utils.codec import decode_ascii_trimmed, high_nibble, to_hex
from .commands import Command
from .errors import MemoryReadIncomplete
from .framing import OFF_FLAGS, Packet

UNKNOWN_PANEL = "UNKNOWN"

OFF_PANEL_TYPE = 28
PANEL_TYPE_LENGTH = 8

SERIAL_INIT_MIN_LENGTH = 30

OFF_MEMORY_PAYLOAD = 6
MEMORY_OVERHEAD = 7

OFF_PANEL_DATE = 18


@dataclass(frozen=True)
class InitCommunicationResponse:
    """Parsed reply to the init-communication request (step 4)."""

    panel_type: str


@dataclass(frozen=True)
class SerialInitResponse:
    """Module identity the panel sends back to the serial init (step 6).

    Every field is echoed into the login confirmation.
    """

    module_address: int
    product_id: int
    software_version: int
    software_revision: int
    software_id: int
    module_id: bytes  # 2 bytes
    serial_number: bytes  # 4 bytes
    section_data: bytes  # EVO section 3030-3038, 9 bytes

    def __repr__(self) -> str:
        return (
            f"SerialInitResponse(module_address=0x{self.module_address:02X}, "
            f"product_id=0x{self.product_id:02X}, "
            f"software={self.software_version}.{self.software_revision}, "
            f"serial={to_hex(self.serial_number)})"
        )


@dataclass(frozen=True)
class LoginResult:
    """Outcome of the login handshake."""

    success: bool
    panel_type: str = UNKNOWN_PANEL


def is_module_login_ack(packet: Packet) -> bool:
    """Check the IP module accepted the password (header byte 4 is 0x38)."""
    return len(packet.header) > OFF_FLAGS and packet.header[OFF_FLAGS] == Command.MODULE_LOGIN_ACK


def parse_init_communication(packet: Packet) -> InitCommunicationResponse:
    """Extract the 8-character panel type from the step 4 reply.

    A reply too short to hold the field reports ``UNKNOWN``.
    """
    body = packet.body
    if len(body) < OFF_PANEL_TYPE + PANEL_TYPE_LENGTH:
        return InitCommunicationResponse(panel_type=UNKNOWN_PANEL)
    panel_type = decode_ascii_trimmed(body, OFF_PANEL_TYPE, PANEL_TYPE_LENGTH)
    return InitCommunicationResponse(panel_type=panel_type)


def parse_serial_init(packet: Packet) -> SerialInitResponse | None:
    """Parse the panel's answer to the serial init request.

    Returns None when the body is too short to hold every field.
    """
    body = packet.body
    if len(body) < SERIAL_INIT_MIN_LENGTH:
        return None
    return SerialInitResponse(
        module_address=body[1],
        product_id=body[4],
        software_version=body[5],
        software_revision=body[6],
        software_id=body[7],
        module_id=bytes(body[8:10]),
        serial_number=bytes(body[17:21]),
        section_data=bytes(body[21:30]),
    )


def is_login_confirmed(packet: Packet) -> bool:
    """The confirmation reply starts with command nibble 0x1."""
    return bool(packet.body) and high_nibble(packet.body[0]) == Command.LOGIN_CONFIRMED


def parse_memory_response(body: bytes, length: int) -> bytes:
    """Slice ``length`` payload bytes out of a memory-read reply body.

    Raises:
        MemoryReadIncomplete: If the body is shorter than ``length + 7``.
    """
    if len(body) < length + MEMORY_OVERHEAD:
        raise MemoryReadIncomplete(length + MEMORY_OVERHEAD, len(body))
    return bytes(body[OFF_MEMORY_PAYLOAD : OFF_MEMORY_PAYLOAD + length])


def parse_panel_date(ram: bytes) -> datetime | None:
    """Decode the panel clock from RAM block 1.

    Bytes 18-24 hold century, year, month, day, hour, minute and second.
    This layout is specific to EVO panels. Returns None when the block is
    too short or the clock holds an impossible date.
    """
    if len(ram) < OFF_PANEL_DATE + 7:
        return None
    century, year, month, day, hour, minute, second = ram[OFF_PANEL_DATE : OFF_PANEL_DATE + 7]
    try:
        return datetime(century * 100 + year, month, day, hour, minute, second)
    except ValueError:
        return None
