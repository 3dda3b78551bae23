"""MCP resources for fleetlog MCP."""

from fleetlog_mcp.resources.status import fleet_status_resource

__all__ = ["fleet_status_resource"]
