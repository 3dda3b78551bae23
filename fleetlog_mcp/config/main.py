"""Application configuration.

Delegates to specialized components:
- Settings: Environment variables
- HostKeyVerifier: Manages known_hosts
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from fleetlog_mcp.config.host_keys import HostKeyVerifier
from fleetlog_mcp.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Application configuration.

    Aggregates settings from the environment and known_hosts handling.
    """

    settings: Settings
    host_keys: HostKeyVerifier

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment.

        Returns:
            Configured instance with all components initialized
        """
        settings = Settings.from_env()
        host_keys = HostKeyVerifier(
            known_hosts_path=os.getenv("FLEETLOG_KNOWN_HOSTS"),
            strict_checking=cls._get_bool_env("FLEETLOG_STRICT_HOST_KEY_CHECKING", True),
        )
        logger.debug(
            "Config initialized: name=%s, status_path=%s, log_dir=%s, "
            "qps=%s, burst=%d, max_sessions=%d",
            settings.name,
            settings.status_path,
            settings.log_dir,
            settings.qps,
            settings.burst,
            settings.max_sessions,
        )
        return cls(settings=settings, host_keys=host_keys)

    @staticmethod
    def _get_bool_env(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() != "false"

    # Delegate to settings for convenience
    @property
    def name(self) -> str:
        """Run-directory name prefix."""
        return self.settings.name

    @property
    def status_path(self) -> Path:
        """Path of the fleet status document."""
        return Path(self.settings.status_path)

    @property
    def log_dir(self) -> Path:
        """Base directory for run directories."""
        return Path(self.settings.log_dir)

    @property
    def qps(self) -> float:
        return self.settings.qps

    @property
    def burst(self) -> int:
        return self.settings.burst

    @property
    def max_sessions(self) -> int:
        return self.settings.max_sessions

    @property
    def verbose(self) -> bool:
        return self.settings.verbose

    @property
    def transport(self) -> str:
        """Transport type (http or stdio)."""
        return self.settings.transport

    @property
    def http_host(self) -> str:
        return self.settings.http_host

    @property
    def http_port(self) -> int:
        return self.settings.http_port

    @property
    def known_hosts_path(self) -> str | None:
        """Path to known_hosts file or None if disabled."""
        return self.host_keys.get_known_hosts_path()
