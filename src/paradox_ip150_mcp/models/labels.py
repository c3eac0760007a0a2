"""EEPROM memory map of label records on EVO192 panels.

Every label is 16 ASCII bytes padded with spaces or NULs. Zones and users
continue in a second EEPROM region once the first one is full.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..protocol.errors import InvalidArgumentError

LABEL_LENGTH = 16


class LabelKind(str, Enum):
    ZONE = "zone"
    PARTITION = "partition"
    USER = "user"
    DOOR = "door"
    MODULE = "module"


@dataclass(frozen=True)
class LabelLayout:
    """Where the records of one label kind live in EEPROM."""

    count: int
    base: int
    stride: int = LABEL_LENGTH
    secondary_base: int | None = None
    secondary_start: int | None = None
    length: int = LABEL_LENGTH

    def address(self, number: int) -> int:
        """EEPROM address of record ``number`` (1-based).

        Raises:
            InvalidArgumentError: If ``number`` is outside ``1..count``.
        """
        if not 1 <= number <= self.count:
            raise InvalidArgumentError(
                f"Invalid record number {number}. Valid values are 1-{self.count}."
            )
        if self.secondary_start is not None and number >= self.secondary_start:
            return self.secondary_base + (number - self.secondary_start) * self.stride
        return self.base + (number - 1) * self.stride

    def to_dict(self) -> dict:
        d = {
            "count": self.count,
            "base": f"0x{self.base:05X}",
            "stride": self.stride,
            "length": self.length,
        }
        if self.secondary_start is not None:
            d["secondary_base"] = f"0x{self.secondary_base:05X}"
            d["secondary_start"] = self.secondary_start
        return d


LABEL_LAYOUTS: dict[LabelKind, LabelLayout] = {
    LabelKind.ZONE: LabelLayout(count=192, base=0x430, secondary_base=0x62F7, secondary_start=97),
    # Partition labels sit inside 107-byte partition records
    LabelKind.PARTITION: LabelLayout(count=8, base=0x3A6B, stride=107),
    LabelKind.USER: LabelLayout(count=999, base=0x3E47, secondary_base=0x15190, secondary_start=257),
    LabelKind.DOOR: LabelLayout(count=32, base=0x345C),
    LabelKind.MODULE: LabelLayout(count=254, base=0x4E47),
}


def label_layout(kind: LabelKind | str) -> LabelLayout:
    """Look up the layout for a label kind given as enum or name.

    Raises:
        InvalidArgumentError: For an unknown kind.
    """
    try:
        return LABEL_LAYOUTS[LabelKind(kind)]
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown label kind '{kind}'. Valid: {[k.value for k in LabelKind]}"
        ) from None


def label_address(kind: LabelKind | str, number: int) -> int:
    return label_layout(kind).address(number)
