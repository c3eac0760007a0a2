"""Exception hierarchy for the IP150 client."""

from __future__ import annotations


class Ip150Error(Exception):
    """Base class for all IP150 client errors."""


class FramingError(Ip150Error):
    """A received buffer is not a sequence of well-formed packets.

    The stream is most likely desynchronized; the read is not retried.
    """


class NoResponseError(Ip150Error):
    """A reply required to continue an exchange never arrived."""


class AuthenticationError(Ip150Error):
    """The module rejected the login request."""


class InvalidArgumentError(Ip150Error, ValueError):
    """An address, block, length or record number is out of range."""


class MemoryReadIncomplete(Ip150Error):
    """A memory-read reply is shorter than the requested length."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Memory read reply too short: need {expected} bytes, got {received}"
        )
        self.expected = expected
        self.received = received


class SessionStateError(Ip150Error):
    """login()/logout() was called in a state that does not allow it."""


class TransportError(Ip150Error, ConnectionError):
    """The underlying byte stream failed or is not open."""
