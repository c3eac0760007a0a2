"""The byte-stream interface the protocol layer drives."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransportPort(Protocol):
    """A connected, exclusively owned, bidirectional byte stream.

    ``read`` blocks until at least one byte arrives or the transport's own
    timeout elapses, and returns at most ``max_bytes`` bytes.
    """

    def write(self, data: bytes) -> int: ...

    def read(self, max_bytes: int) -> bytes: ...

    def data_available(self) -> bool: ...
