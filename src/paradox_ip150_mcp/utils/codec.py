"""Stateless byte helpers shared by the protocol layer.

Every function here is pure: no I/O, no state. Bit positions passed to
:func:`get_bit` / :func:`set_bit` are a caller precondition and are not
range-checked.
"""

from __future__ import annotations

from typing import NamedTuple


class Address18(NamedTuple):
    """An 18-bit memory address split into its three wire fields."""

    bits0_7: int
    bits8_15: int
    bits16_17: int


def high_nibble(value: int) -> int:
    """Return bits 4-7 of a byte."""
    return (value & 0xF0) >> 4


def low_nibble(value: int) -> int:
    """Return bits 0-3 of a byte."""
    return value & 0x0F


def get_bit(value: int, position: int) -> bool:
    return (value & (1 << position)) != 0


def set_bit(value: int, position: int, on: bool) -> int:
    """Return ``value`` with the bit at ``position`` set or cleared."""
    if on:
        return value | (1 << position)
    return value & ~(1 << position)


def checksum(data: bytes) -> int:
    """8-bit wraparound sum of ``data``."""
    return sum(data) & 0xFF


def pad_right(data: bytes, size: int, fill: int) -> bytes:
    """Right-pad ``data`` with ``fill`` up to ``size`` bytes.

    Data already ``size`` bytes or longer is returned unchanged.
    """
    if len(data) >= size:
        return bytes(data)
    return bytes(data) + bytes([fill]) * (size - len(data))


def ascii_fixed_width(text: str | None, width: int, fill: int) -> bytes:
    """Encode ``text`` as ASCII into exactly ``width`` bytes.

    Longer text is truncated; shorter text is right-padded with ``fill``.
    """
    encoded = (text or "")[:width].encode("ascii", errors="replace")
    return pad_right(encoded, width, fill)


def decode_ascii_trimmed(data: bytes, offset: int = 0, length: int | None = None) -> str:
    """Decode an ASCII field and strip trailing spaces and NUL bytes.

    Bytes above 0x7F decode as ``?``.

    Args:
        data: Source buffer.
        offset: Start of the field within ``data``.
        length: Field width; defaults to the rest of the buffer.
    """
    end = len(data) if length is None else offset + length
    text = bytes(data[offset:end]).decode("ascii", errors="replace").replace("\ufffd", "?")
    return text.rstrip(" \x00")


def split_address18(value: int) -> Address18:
    """Split an EEPROM address into its low, middle and top-two-bit fields.

    Bits above 17 are ignored.
    """
    return Address18(
        bits0_7=value & 0xFF,
        bits8_15=(value & 0xFF00) >> 8,
        bits16_17=(value & 0x30000) >> 16,
    )


def to_hex(data: bytes | None) -> str:
    """Render bytes as space-separated upper-case hex (``"AA 08 00"``)."""
    if not data:
        return ""
    return " ".join(f"{b:02X}" for b in data)
