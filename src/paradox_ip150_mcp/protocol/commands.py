"""Command codes and request builders.

Each builder returns the complete wire bytes (header + body) of one
request. Panel-level bodies end with an 8-bit checksum; the IP module
probe bodies are opaque constants.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

from ..utils.codec import ascii_fixed_width, checksum, pad_right, set_bit, split_address18
from .errors import InvalidArgumentError
from .framing import (
    FILL_BYTE,
    MESSAGE_TYPE_MODULE,
    MESSAGE_TYPE_PANEL,
    MODE_HANDSHAKE,
    MODE_SESSION,
    build_header,
    build_packet,
)

if TYPE_CHECKING:
    from .parser import SerialInitResponse


class Command(IntEnum):
    """Reply identifiers.

    ``MODULE_LOGIN_ACK`` is a header byte; the others are the high nibble
    of the reply body's first byte.
    """

    LOGIN_CONFIRMED = 0x1
    MEMORY_READ = 0x5
    MODULE_LOGIN_ACK = 0x38


class ModuleCommand(IntEnum):
    """IP module commands carried in header byte 5."""

    LOGIN = 0xF0
    PROBE_F2 = 0xF2
    PROBE_F3 = 0xF3
    PROBE_F8 = 0xF8


class MemorySpace(IntEnum):
    """Value of bit 7 of the memory-read control byte."""

    EEPROM = 0
    RAM = 1


PANEL_MESSAGE_SIZE = 37
PASSWORD_BLOCK_SIZE = 16

INIT_COMMUNICATION = 0x72
SERIAL_INIT = (0x5F, 0x20)
READ_MEMORY = (0x50, 0x08)
LOGOUT = (0x00, 0x07, 0x05, 0x00, 0x00, 0x00)

PROBE_F8_PAYLOAD = bytes([0x0A, 0x50, 0x08, 0x00, 0x00, 0x01, 0x00, 0x00, 0x59])

# Constant fields of the login confirmation
MODEM_SPEED = 0x0A
WINLOAD_TYPE_ID = 0x30
USER_CODE = bytes([0x02, 0x10, 0x00])
SOURCE_ID_WINLOAD_IP = 0x02

MAX_EEPROM_ADDRESS = 0x3FFFF
MAX_EEPROM_BLOCK = 15
MIN_RAM_BLOCK = 1
MAX_RAM_BLOCK = 16
MAX_READ_LENGTH = 64


def with_checksum(message: bytes | bytearray) -> bytes:
    """Return ``message`` with its last byte replaced by the checksum of the rest."""
    buf = bytearray(message)
    buf[-1] = checksum(buf[:-1])
    return bytes(buf)


def password_body(password: str) -> bytes:
    """Encode the module password, 0xEE-padded to a multiple of 16 bytes."""
    blocks = -(-len(password) // PASSWORD_BLOCK_SIZE)
    return ascii_fixed_width(password, blocks * PASSWORD_BLOCK_SIZE, FILL_BYTE)


def build_module_login(password: str) -> bytes:
    """Step 1: log in to the IP module with its password."""
    header = build_header(
        len(password), MESSAGE_TYPE_MODULE, ModuleCommand.LOGIN, MODE_HANDSHAKE
    )
    return build_packet(header, password_body(password))


def build_probe(command: ModuleCommand) -> bytes:
    """Steps 2, 3 and 5: undocumented IP module requests.

    Their replies are read and discarded; the module expects them before
    it passes panel traffic through.
    """
    if command == ModuleCommand.PROBE_F8:
        header = build_header(
            len(PROBE_F8_PAYLOAD), MESSAGE_TYPE_MODULE, command, MODE_HANDSHAKE
        )
        return build_packet(header, pad_right(PROBE_F8_PAYLOAD, 16, FILL_BYTE))
    if command in (ModuleCommand.PROBE_F2, ModuleCommand.PROBE_F3):
        return build_packet(build_header(0, MESSAGE_TYPE_MODULE, command, MODE_HANDSHAKE))
    raise ValueError(f"Not a probe command: {command!r}")


def build_init_communication() -> bytes:
    """Step 4: start software communication; the reply names the panel."""
    body = with_checksum(pad_right(bytes([INIT_COMMUNICATION]), PANEL_MESSAGE_SIZE, 0x00))
    header = build_header(PANEL_MESSAGE_SIZE, MESSAGE_TYPE_PANEL, mode=MODE_HANDSHAKE)
    return build_packet(header, body)


def build_serial_init() -> bytes:
    """Step 6: ask the panel for its module identity and serial number."""
    body = with_checksum(pad_right(bytes(SERIAL_INIT), PANEL_MESSAGE_SIZE, 0x00))
    header = build_header(PANEL_MESSAGE_SIZE, MESSAGE_TYPE_PANEL, mode=MODE_HANDSHAKE)
    return build_packet(header, body)


def build_login_confirmation(init: SerialInitResponse) -> bytes:
    """Step 7: answer the panel's initialization with our own.

    Args:
        init: The :class:`~.parser.SerialInitResponse` captured in step 6.
    """
    body = bytearray(PANEL_MESSAGE_SIZE)
    body[0] = 0x00
    body[1] = init.module_address
    # 2-3 not used
    body[4] = init.product_id
    body[5] = init.software_version
    body[6] = init.software_revision
    body[7] = init.software_id
    body[8:10] = init.module_id
    # 10-11 PC password
    body[12] = MODEM_SPEED
    body[13] = WINLOAD_TYPE_ID
    body[14:17] = USER_CODE
    body[17:21] = init.serial_number
    body[21:30] = init.section_data
    # 30-33 not used
    body[34] = SOURCE_ID_WINLOAD_IP
    body[35] = 0x00  # carrier length
    header = build_header(PANEL_MESSAGE_SIZE, MESSAGE_TYPE_PANEL, mode=MODE_SESSION)
    return build_packet(header, with_checksum(body))


def build_logout() -> bytes:
    """Build the disconnect request. The panel's reply is not awaited."""
    body = with_checksum(bytes(LOGOUT) + b"\x00")
    return build_packet(build_header(len(body)), body)


def build_read_memory(space: MemorySpace, address: int, length: int) -> bytes:
    """Build a memory-read request.

    Args:
        space: EEPROM or RAM.
        address: Linear EEPROM address or RAM block number.
        length: Number of bytes to read.
    """
    split = split_address18(address)
    control = set_bit(0x00, 7, space == MemorySpace.RAM)
    if space == MemorySpace.EEPROM:
        control = set_bit(control, 1, bool(split.bits16_17 & 0x2))
        control = set_bit(control, 0, bool(split.bits16_17 & 0x1))

    body = bytes([
        *READ_MEMORY, control, 0x00,
        split.bits8_15, split.bits0_7, length, 0x00,
    ])
    body = with_checksum(body)
    return build_packet(build_header(len(body)), body)


def _check_length(length: int) -> None:
    if not 1 <= length <= MAX_READ_LENGTH:
        raise InvalidArgumentError(
            f"Bytes to read must be 1-{MAX_READ_LENGTH}, got {length}"
        )


def build_read_eeprom(address: int, block: int = 0, length: int = 16) -> bytes:
    """Build an EEPROM read request.

    Args:
        address: Linear address 0-0x3FFFF.
        block: Block number 0-15. Validated for compatibility with the
            panel's addressing scheme but not transmitted.
        length: Bytes to read, 1-64.
    """
    if not 0 <= address <= MAX_EEPROM_ADDRESS:
        raise InvalidArgumentError(
            f"EEPROM address must be 0-0x{MAX_EEPROM_ADDRESS:X}, got 0x{address:X}"
        )
    if not 0 <= block <= MAX_EEPROM_BLOCK:
        raise InvalidArgumentError(
            f"Invalid block number. Valid values are 0 to {MAX_EEPROM_BLOCK}, got {block}"
        )
    _check_length(length)
    return build_read_memory(MemorySpace.EEPROM, address, length)


def build_read_ram(block: int, length: int = 64) -> bytes:
    """Build a RAM read request.

    Args:
        block: RAM block 1-16.
        length: Bytes to read, 1-64.
    """
    if not MIN_RAM_BLOCK <= block <= MAX_RAM_BLOCK:
        raise InvalidArgumentError(
            f"Invalid block number. Valid values are {MIN_RAM_BLOCK} to "
            f"{MAX_RAM_BLOCK}, got {block}"
        )
    _check_length(length)
    return build_read_memory(MemorySpace.RAM, block, length)
