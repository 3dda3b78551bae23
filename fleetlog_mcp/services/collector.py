"""Per-instance log collection.

Runs the collection stages against one instance over one session:

1. connect
2. static commands
3. systemd service discovery, one journal dump per service
4. IPAM diagnostic query
5. log directory discovery, one `cat` per file

Every remote command is gated by the shared rate governor. The stop
event is checked before each command: a command already running is
allowed to finish, later ones are skipped. The first failure at any
stage aborts the instance and is returned as data in the result record;
nothing is raised to the orchestrator.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from fleetlog_mcp.config.settings import DEFAULT_DIAGNOSTIC_URL, DEFAULT_REMOTE_LOG_DIR
from fleetlog_mcp.models import CommandSpec, Instance, InstanceLogs
from fleetlog_mcp.protocols import RemoteSession, SessionFactory
from fleetlog_mcp.services.discovery import (
    LIST_UNITS_COMMAND,
    STATIC_COMMANDS,
    diagnostic_command,
    list_files_command,
    parse_log_files,
    parse_service_units,
)
from fleetlog_mcp.services.ratelimit import RateGovernor
from fleetlog_mcp.services.session import RemoteCommandError
from fleetlog_mcp.services.sink import FileSink, instance_prefix

logger = logging.getLogger(__name__)


class CollectionStopped(Exception):
    """Stop signal fired before a remote command was started."""


class InstanceCollector:
    """Collects logs from a single instance."""

    def __init__(
        self,
        group: str,
        instance: Instance,
        session_factory: SessionFactory,
        governor: RateGovernor,
        sink: FileSink,
        *,
        commands: Iterable[CommandSpec] = STATIC_COMMANDS,
        stop: asyncio.Event | None = None,
        verbose: bool = False,
        remote_log_dir: str = DEFAULT_REMOTE_LOG_DIR,
        diagnostic_url: str = DEFAULT_DIAGNOSTIC_URL,
        group_scoped: bool = False,
    ) -> None:
        self.group = group
        self.instance = instance
        self.session_factory = session_factory
        self.governor = governor
        self.sink = sink
        self.commands = tuple(commands)
        self.stop = stop
        self.verbose = verbose
        self.remote_log_dir = remote_log_dir
        self.diagnostic_url = diagnostic_url
        self.prefix = instance_prefix(
            instance.instance_id,
            instance.public_dns_name,
            group if group_scoped else None,
        )

    @property
    def instance_id(self) -> str:
        return self.instance.instance_id

    def _failed(self, error: Exception) -> InstanceLogs:
        return InstanceLogs(group=self.group, instance_id=self.instance_id, error=error)

    async def collect(self) -> InstanceLogs:
        """Run all collection stages.

        Returns:
            Result record with written paths, or with the first error
        """
        try:
            await self._throttle("connecting")
            session = self.session_factory(self.instance)
        except Exception as e:
            return self._failed(e)

        try:
            try:
                await session.connect()
            except Exception as e:
                return self._failed(e)

            try:
                paths = await self._run_stages(session)
            except Exception as e:
                return self._failed(e)
        finally:
            await self._close(session)

        return InstanceLogs(group=self.group, instance_id=self.instance_id, paths=paths)

    async def _run_stages(self, session: RemoteSession) -> list[str]:
        paths: list[str] = []

        await self._run_batch(session, self.commands, paths)

        logger.info("listing systemd service units (instance=%s)", self.instance_id)
        services = await self._discover(session, LIST_UNITS_COMMAND, parse_service_units)
        await self._run_batch(session, services, paths)

        logger.info("fetching ENI information (instance=%s)", self.instance_id)
        await self._run_batch(session, [diagnostic_command(self.diagnostic_url)], paths)

        logger.info("listing %s (instance=%s)", self.remote_log_dir, self.instance_id)
        files = await self._discover(
            session, list_files_command(self.remote_log_dir), parse_log_files
        )
        await self._run_batch(session, files, paths)

        return paths

    async def _discover(
        self,
        session: RemoteSession,
        command: str,
        parse: Callable[[bytes], list[CommandSpec]],
    ) -> list[CommandSpec]:
        output = await self._run(session, command)
        specs = parse(output)
        logger.debug(
            "discovered %d command(s) from %r (instance=%s)",
            len(specs),
            command,
            self.instance_id,
        )
        return specs

    async def _run_batch(
        self,
        session: RemoteSession,
        specs: Iterable[CommandSpec],
        paths: list[str],
    ) -> None:
        for spec in specs:
            output = await self._run(session, spec.command)
            path = await asyncio.to_thread(
                self.sink.write, self.prefix + spec.file_name, output
            )
            paths.append(str(path))

    async def _run(self, session: RemoteSession, command: str) -> bytes:
        if self.stop is not None and self.stop.is_set():
            raise CollectionStopped(
                f"stopped before running {command!r} for {self.instance_id!r}"
            )
        await self._throttle("running command")
        try:
            return await session.run(command, verbose=self.verbose)
        except RemoteCommandError:
            raise
        except Exception as e:
            raise RemoteCommandError(command, self.instance_id, e) from e

    async def _throttle(self, action: str) -> None:
        if self.governor.allow():
            return
        logger.debug(
            "waiting for rate limiter before %s (instance=%s, qps=%s, burst=%d)",
            action,
            self.instance_id,
            self.governor.qps,
            self.governor.burst,
        )
        await self.governor.wait(self.stop)
        logger.debug("waited for rate limiter (instance=%s)", self.instance_id)

    async def _close(self, session: RemoteSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.warning("Failed to close session to %s: %s", self.instance_id, e)
