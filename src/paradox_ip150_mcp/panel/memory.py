"""Panel memory reads: raw RAM / EEPROM blocks, labels and the panel clock."""

from __future__ import annotations

import logging
from datetime import datetime

from ..models.labels import LabelKind, label_layout
from ..protocol.commands import Command, build_read_eeprom, build_read_ram
from ..protocol.errors import MemoryReadIncomplete
from ..protocol.parser import parse_memory_response, parse_panel_date
from ..transport.port import TransportPort
from ..transport.reader import MAX_RETRIES, RETRY_DELAY_S, await_command
from ..utils.codec import decode_ascii_trimmed

logger = logging.getLogger(__name__)

PANEL_CLOCK_RAM_BLOCK = 1


class MemoryReader:
    """Issues memory-read commands over a logged-in transport.

    A read that gets no reply, or a reply too short for the requested
    length, returns None; the caller decides whether to retry or skip.
    Out-of-range arguments raise before anything is sent.
    """

    def __init__(
        self,
        port: TransportPort,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_S,
    ) -> None:
        self._port = port
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def read_eeprom(self, address: int, block: int = 0, length: int = 16) -> bytes | None:
        """Read ``length`` bytes of EEPROM starting at ``address``.

        Args:
            address: Linear address 0-0x3FFFF.
            block: Block number 0-15.
            length: Bytes to read, 1-64.

        Raises:
            InvalidArgumentError: If any argument is out of range.
        """
        return self._read(build_read_eeprom(address, block, length), length)

    def read_ram(self, block: int, length: int = 64) -> bytes | None:
        """Read ``length`` bytes from RAM block ``block`` (1-16).

        Raises:
            InvalidArgumentError: If any argument is out of range.
        """
        return self._read(build_read_ram(block, length), length)

    def _read(self, request: bytes, length: int) -> bytes | None:
        self._port.write(request)
        body = await_command(
            self._port,
            Command.MEMORY_READ,
            max_retries=self._max_retries,
            retry_delay=self._retry_delay,
        )
        if body is None:
            return None
        try:
            return parse_memory_response(body, length)
        except MemoryReadIncomplete as e:
            logger.debug("%s", e)
            return None

    def read_label(self, kind: LabelKind | str, number: int) -> str | None:
        """Read and decode one label record, e.g. ``read_label("zone", 3)``.

        Raises:
            InvalidArgumentError: For an unknown kind or record number.
        """
        layout = label_layout(kind)
        data = self.read_eeprom(layout.address(number), 0, layout.length)
        if data is None:
            return None
        return decode_ascii_trimmed(data)

    def read_panel_date(self) -> datetime | None:
        """Read the panel clock from RAM."""
        ram = self.read_ram(PANEL_CLOCK_RAM_BLOCK)
        if ram is None:
            return None
        return parse_panel_date(ram)
