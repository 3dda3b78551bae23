"""Application settings from environment variables.

Centralized environment variable parsing and validation.
"""

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_DIAGNOSTIC_URL = "http://localhost:61679/v1/enis"
DEFAULT_REMOTE_LOG_DIR = "/var/log"


@dataclass
class Settings:
    """Application settings from environment.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Fleet status and run output
    name: str = field(default="fleet")
    status_path: str = field(default="fleetlog.json")
    log_dir: str = field(default="./logs")

    # Rate governor
    qps: float = field(default=150.0)
    burst: int = field(default=10)
    max_sessions: int = field(default=0)  # 0 = unbounded

    # SSH
    ssh_user: str = field(default="ec2-user")
    ssh_key_path: str | None = field(default=None)
    connect_timeout: int = field(default=30)
    command_timeout: int = field(default=300)

    # Remote collection targets
    remote_log_dir: str = field(default=DEFAULT_REMOTE_LOG_DIR)
    diagnostic_url: str = field(default=DEFAULT_DIAGNOSTIC_URL)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    # Transport
    transport: str = field(default="http")
    http_host: str = field(default="0.0.0.0")
    http_port: int = field(default=8000)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from FLEETLOG_* environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            name=os.getenv("FLEETLOG_NAME", "fleet"),
            status_path=os.getenv("FLEETLOG_STATUS_PATH", "fleetlog.json"),
            log_dir=os.getenv("FLEETLOG_LOG_DIR", "./logs"),
            qps=cls._get_float("FLEETLOG_QPS", 150.0),
            burst=cls._get_int("FLEETLOG_BURST", 10),
            max_sessions=cls._get_int("FLEETLOG_MAX_SESSIONS", 0),
            ssh_user=os.getenv("FLEETLOG_SSH_USER", "ec2-user"),
            ssh_key_path=os.getenv("FLEETLOG_SSH_KEY_PATH") or None,
            connect_timeout=cls._get_int("FLEETLOG_CONNECT_TIMEOUT", 30),
            command_timeout=cls._get_int("FLEETLOG_COMMAND_TIMEOUT", 300),
            remote_log_dir=os.getenv("FLEETLOG_REMOTE_LOG_DIR", DEFAULT_REMOTE_LOG_DIR),
            diagnostic_url=os.getenv("FLEETLOG_DIAGNOSTIC_URL", DEFAULT_DIAGNOSTIC_URL),
            log_level=os.getenv("FLEETLOG_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("FLEETLOG_LOG_COLORS", True),
            transport=cls._get_transport(),
            http_host=os.getenv("FLEETLOG_HTTP_HOST", "0.0.0.0"),
            http_port=cls._get_int("FLEETLOG_HTTP_PORT", 8000),
        )

    @property
    def verbose(self) -> bool:
        """Whether remote sessions log command details."""
        return self.log_level == "DEBUG"

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float for %s: %s, using default %s", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Boolean value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_transport() -> str:
        """Get transport from environment with validation.

        Returns:
            Transport type ("http" or "stdio")
        """
        transport = os.getenv("FLEETLOG_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "http"
