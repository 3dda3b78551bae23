"""SSH remote sessions for fleet instances."""

import logging
from typing import TYPE_CHECKING

import asyncssh

from fleetlog_mcp.models import Instance

if TYPE_CHECKING:
    from fleetlog_mcp.config import Config

logger = logging.getLogger(__name__)


class SessionConnectError(Exception):
    """Failed to establish SSH connection after retry."""

    def __init__(self, instance_id: str, original_error: Exception):
        """Initialize connection error.

        Args:
            instance_id: ID of the instance being connected to
            original_error: Original exception that caused the failure
        """
        self.instance_id = instance_id
        self.original_error = original_error
        super().__init__(f"Cannot connect to {instance_id}: {original_error}")


class RemoteCommandError(Exception):
    """Remote command failed or exited non-zero."""

    def __init__(self, command: str, instance_id: str, detail: object):
        self.command = command
        self.instance_id = instance_id
        self.detail = detail
        super().__init__(
            f"failed to run command {command!r} for {instance_id!r} (error {detail})"
        )


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class SSHSession:
    """Remote session over a single asyncssh connection."""

    def __init__(
        self,
        instance: Instance,
        user: str,
        key_path: str | None = None,
        known_hosts: str | None = None,
        connect_timeout: int = 30,
        command_timeout: int = 300,
    ) -> None:
        self.instance = instance
        self.user = user
        self.key_path = key_path
        self.known_hosts = known_hosts
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self._conn: asyncssh.SSHClientConnection | None = None

    async def _open(self) -> asyncssh.SSHClientConnection:
        client_keys = [self.key_path] if self.key_path else None
        return await asyncssh.connect(
            self.instance.connection_hostname,
            username=self.user,
            known_hosts=self.known_hosts,
            client_keys=client_keys,
            connect_timeout=self.connect_timeout,
        )

    async def connect(self) -> None:
        """Connect with automatic one-time retry on failure.

        Raises:
            SessionConnectError: If connection fails after retry
        """
        logger.info(
            "Connecting to %s (%s@%s)",
            self.instance.instance_id,
            self.user,
            self.instance.connection_hostname,
        )
        try:
            self._conn = await self._open()
            return
        except Exception as first_error:
            logger.warning(
                "Connection to %s failed: %s, retrying",
                self.instance.instance_id,
                first_error,
            )

        try:
            self._conn = await self._open()
            logger.info("Retry connection to %s succeeded", self.instance.instance_id)
        except Exception as retry_error:
            logger.error(
                "Retry connection to %s failed: %s",
                self.instance.instance_id,
                retry_error,
            )
            raise SessionConnectError(self.instance.instance_id, retry_error) from retry_error

    async def run(self, command: str, verbose: bool = False) -> bytes:
        """Run command and return raw stdout.

        Raises:
            RemoteCommandError: If not connected or command exits non-zero
        """
        if self._conn is None:
            raise RemoteCommandError(command, self.instance.instance_id, "not connected")

        if verbose:
            logger.debug("Running %r on %s", command, self.instance.instance_id)

        result = await self._conn.run(
            command,
            check=False,
            encoding=None,
            timeout=self.command_timeout,
        )

        if result.returncode != 0:
            stderr = _decode(result.stderr).strip()
            raise RemoteCommandError(
                command,
                self.instance.instance_id,
                f"exit code {result.returncode}: {stderr}",
            )

        stdout = result.stdout
        if stdout is None:
            output = b""
        elif isinstance(stdout, str):
            output = stdout.encode("utf-8")
        else:
            output = stdout

        if verbose:
            logger.debug(
                "Command %r on %s returned %d bytes",
                command,
                self.instance.instance_id,
                len(output),
            )
        return output

    async def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        await self._conn.wait_closed()
        self._conn = None


def ssh_session_factory(config: "Config"):
    """Build a session factory bound to the configured SSH credentials.

    Args:
        config: Application config

    Returns:
        Callable creating an unconnected SSHSession per instance
    """
    settings = config.settings
    known_hosts = config.known_hosts_path

    def factory(instance: Instance) -> SSHSession:
        return SSHSession(
            instance,
            user=settings.ssh_user,
            key_path=settings.ssh_key_path,
            known_hosts=known_hosts,
            connect_timeout=settings.connect_timeout,
            command_timeout=settings.command_timeout,
        )

    return factory
