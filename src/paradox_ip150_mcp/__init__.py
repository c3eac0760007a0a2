"""Client and MCP server for the Paradox IP150 software port (EVO panels)."""

__version__ = "0.1.0"
