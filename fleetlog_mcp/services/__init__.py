"""Services for fleetlog MCP."""

from fleetlog_mcp.services.aggregator import (
    DuplicateInstanceLogsError,
    FleetStatusError,
    StateAggregator,
    UnknownGroupError,
)
from fleetlog_mcp.services.collector import InstanceCollector
from fleetlog_mcp.services.fleet import FleetLogCollector, RunSummary, fetch_fleet_logs
from fleetlog_mcp.services.ratelimit import RateGovernor, RateLimitWaitCancelled
from fleetlog_mcp.services.session import (
    RemoteCommandError,
    SessionConnectError,
    SSHSession,
    ssh_session_factory,
)
from fleetlog_mcp.services.sink import FileSink, instance_prefix, shorten
from fleetlog_mcp.services.state import (
    get_collector,
    get_config,
    reset_state,
    set_collector,
    set_config,
)
from fleetlog_mcp.services.status import FleetStatus

__all__ = [
    "DuplicateInstanceLogsError",
    "FileSink",
    "FleetLogCollector",
    "FleetStatus",
    "FleetStatusError",
    "InstanceCollector",
    "RateGovernor",
    "RateLimitWaitCancelled",
    "RemoteCommandError",
    "RunSummary",
    "SessionConnectError",
    "SSHSession",
    "StateAggregator",
    "UnknownGroupError",
    "fetch_fleet_logs",
    "get_collector",
    "get_config",
    "instance_prefix",
    "reset_state",
    "set_collector",
    "set_config",
    "shorten",
    "ssh_session_factory",
]
