"""Data models for fleetlog MCP."""

from fleetlog_mcp.models.command import CommandSpec, InstanceLogs
from fleetlog_mcp.models.fleet import GroupStatus, Instance

__all__ = [
    "CommandSpec",
    "GroupStatus",
    "Instance",
    "InstanceLogs",
]
