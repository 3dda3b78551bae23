"""Utilities for fleetlog MCP."""

from fleetlog_mcp.utils.console import ColorfulFormatter, FleetLogFormatter
from fleetlog_mcp.utils.shell import quote_path

__all__ = [
    "ColorfulFormatter",
    "FleetLogFormatter",
    "quote_path",
]
