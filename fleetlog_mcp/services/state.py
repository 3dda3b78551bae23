"""Global state management for fleetlog MCP."""

from fleetlog_mcp.config import Config
from fleetlog_mcp.services.fleet import FleetLogCollector
from fleetlog_mcp.services.status import FleetStatus

# Global state (initialized on first access)
_config: Config | None = None
_collector: FleetLogCollector | None = None


def get_config() -> Config:
    """Get or create config."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def get_collector() -> FleetLogCollector:
    """Get or create the fleet log collector.

    Loads fleet status from the configured status document on first use.
    """
    global _collector
    if _collector is None:
        config = get_config()
        _collector = FleetLogCollector(config, FleetStatus.load(config.status_path))
    return _collector


def reset_state() -> None:
    """Reset global state for testing.

    This function clears the singleton instances, allowing tests
    to start with fresh state. Should only be used in test fixtures.
    """
    global _config, _collector
    _config = None
    _collector = None


def set_config(config: Config) -> None:
    """Set the global config instance.

    Args:
        config: Config instance to use globally.
    """
    global _config
    _config = config


def set_collector(collector: FleetLogCollector) -> None:
    """Set the global collector instance.

    Allows tests to inject a collector with fake sessions.

    Args:
        collector: FleetLogCollector instance to use globally.
    """
    global _collector
    _collector = collector
