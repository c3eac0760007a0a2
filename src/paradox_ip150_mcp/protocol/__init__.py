"""Protocol layer: packet framing, checksums, request builders, and response parsing."""

from .errors import (
    AuthenticationError,
    FramingError,
    InvalidArgumentError,
    Ip150Error,
    MemoryReadIncomplete,
    NoResponseError,
    SessionStateError,
    TransportError,
)
from .framing import Packet, build_header, build_packet, split_packets
from .commands import Command, MemorySpace, build_read_eeprom, build_read_ram
from .parser import LoginResult, SerialInitResponse
