"""Panel-level operations: the login handshake and memory reads."""

from .session import HandshakeSession, SessionState
from .memory import MemoryReader
