"""Transport layer: the byte-stream port, the TCP connection and receive helpers."""

from .port import TransportPort
from .tcp_connection import TCPConnection
