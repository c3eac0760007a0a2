"""Connection settings, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .transport.tcp_connection import CONNECT_TIMEOUT_S, DEFAULT_PORT, IO_TIMEOUT_S

ENV_HOST = "PARADOX_IP150_HOST"
ENV_PORT = "PARADOX_IP150_PORT"
ENV_PASSWORD = "PARADOX_IP150_PASSWORD"

DEFAULT_PASSWORD = "paradox"


@dataclass(frozen=True)
class ConnectionSettings:
    host: str = ""
    port: int = DEFAULT_PORT
    password: str = DEFAULT_PASSWORD
    connect_timeout: float = CONNECT_TIMEOUT_S
    io_timeout: float = IO_TIMEOUT_S

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ConnectionSettings:
        """Build settings from ``PARADOX_IP150_*`` variables.

        Raises:
            ValueError: If the port is not an integer.
        """
        env = os.environ if environ is None else environ
        port = env.get(ENV_PORT)
        return cls(
            host=env.get(ENV_HOST, ""),
            port=int(port) if port else DEFAULT_PORT,
            password=env.get(ENV_PASSWORD, DEFAULT_PASSWORD),
        )
