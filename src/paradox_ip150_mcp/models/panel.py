"""Connection / panel summary model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PanelInfo:
    """What the server knows about the connected panel."""

    host: str = ""
    port: int = 0
    panel_type: str = ""
    logged_in: bool = False

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "panel_type": self.panel_type,
            "logged_in": self.logged_in,
        }
