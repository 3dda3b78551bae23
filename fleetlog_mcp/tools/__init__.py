"""MCP tools for fleetlog MCP."""

from fleetlog_mcp.tools.logs import download_logs, fetch_logs

__all__ = ["download_logs", "fetch_logs"]
