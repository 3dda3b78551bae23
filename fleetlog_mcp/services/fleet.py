"""Fleet-wide log collection.

Locking Strategy:
- One coarse `asyncio.Lock` on FleetLogCollector serializes whole runs
  and archival copies; fleet status is never mutated outside it.
- Workers share only the rate governor and the result queue. Each worker
  writes files under its own instance prefix; the prefix carries the group
  name when an instance ID is listed under more than one group.

Cancellation:
- A single `asyncio.Event` is checked by each worker before any remote
  work, by each collector before every command, by the rate governor
  while waiting, and by the orchestrator while draining results.
- A command already running when the event fires is allowed to finish;
  only commands not yet started are skipped. After the event fires the
  orchestrator keeps merging records produced before it, waits for the
  running workers to wind down, and discards the records they finish with.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fleetlog_mcp.config.settings import DEFAULT_DIAGNOSTIC_URL, DEFAULT_REMOTE_LOG_DIR
from fleetlog_mcp.models import CommandSpec, InstanceLogs
from fleetlog_mcp.protocols import SessionFactory
from fleetlog_mcp.services.aggregator import StateAggregator
from fleetlog_mcp.services.collector import InstanceCollector
from fleetlog_mcp.services.discovery import STATIC_COMMANDS
from fleetlog_mcp.services.ratelimit import RateGovernor
from fleetlog_mcp.services.session import ssh_session_factory
from fleetlog_mcp.services.sink import FileSink
from fleetlog_mcp.services.status import FleetStatus

if TYPE_CHECKING:
    from fleetlog_mcp.config import Config

logger = logging.getLogger(__name__)

RESULT_QUEUE_SIZE = 10


@dataclass
class RunSummary:
    """Outcome of one fleet collection run."""

    run_dir: Path
    total_files: int = 0
    collected: int = 0
    failed: int = 0
    cancelled: bool = False


async def _worker(
    collector: InstanceCollector,
    results: "asyncio.Queue[InstanceLogs]",
    stop: asyncio.Event,
    sessions: asyncio.Semaphore | None,
) -> None:
    if stop.is_set():
        logger.warning("exiting fetch logger (prefix=%s)", collector.prefix)
        return

    if sessions is None:
        record = await collector.collect()
    else:
        async with sessions:
            if stop.is_set():
                logger.warning("exiting fetch logger (prefix=%s)", collector.prefix)
                return
            record = await collector.collect()

    if stop.is_set():
        logger.warning(
            "discarding record finished after stop (group=%s, instance=%s)",
            record.group,
            record.instance_id,
        )
        return
    await results.put(record)


async def _next_result(
    results: "asyncio.Queue[InstanceLogs]",
    stop: asyncio.Event,
) -> InstanceLogs | None:
    """Wait for the next record, or None once stop fires."""
    get = asyncio.ensure_future(results.get())
    stopped = asyncio.ensure_future(stop.wait())
    try:
        done, _ = await asyncio.wait({get, stopped}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopped.cancel()
        if not get.done():
            get.cancel()

    if get in done:
        return get.result()
    return None


async def fetch_fleet_logs(
    status: FleetStatus,
    session_factory: SessionFactory,
    *,
    name: str,
    log_dir: Path | str,
    qps: float,
    burst: int,
    commands: Iterable[CommandSpec] = STATIC_COMMANDS,
    stop: asyncio.Event | None = None,
    verbose: bool = False,
    max_sessions: int = 0,
    remote_log_dir: str = DEFAULT_REMOTE_LOG_DIR,
    diagnostic_url: str = DEFAULT_DIAGNOSTIC_URL,
) -> RunSummary:
    """Collect logs from every instance of every group concurrently.

    Args:
        status: Fleet status providing membership; updated in place
        session_factory: Creates an unconnected session per instance
        name: Run directory name prefix
        log_dir: Base directory for the run directory
        qps: Rate governor sustained commands per second
        burst: Rate governor burst size
        commands: Static commands run on every instance
        stop: Cancellation signal
        verbose: Log remote command details
        max_sessions: Bound on concurrently open sessions (0 = unbounded)
        remote_log_dir: Remote directory whose files are collected
        diagnostic_url: URL queried for IPAM diagnostics

    Returns:
        RunSummary with the run directory and aggregate counts

    Raises:
        OSError: If the run directory cannot be created
        UnknownGroupError: If a record names an unknown group
        DuplicateInstanceLogsError: If an instance was already collected
    """
    stop = stop if stop is not None else asyncio.Event()
    governor = RateGovernor(qps, burst)
    commands = tuple(commands)

    run_dir = Path(tempfile.mkdtemp(prefix=f"{name}-logs", dir=log_dir))
    sink = FileSink(run_dir)
    sessions = asyncio.Semaphore(max_sessions) if max_sessions > 0 else None

    results: asyncio.Queue[InstanceLogs] = asyncio.Queue(maxsize=RESULT_QUEUE_SIZE)
    tasks: list[asyncio.Task[None]] = []
    waits = 0

    membership = status.membership()
    listings = Counter(iid for instances in membership.values() for iid in instances)
    shared_ids = {iid for iid, count in listings.items() if count > 1}

    for group_name, instances in membership.items():
        logger.info("fetching logs (group=%s, instances=%d)", group_name, len(instances))
        waits += len(instances)

        for instance in instances.values():
            collector = InstanceCollector(
                group_name,
                instance,
                session_factory,
                governor,
                sink,
                commands=commands,
                stop=stop,
                verbose=verbose,
                group_scoped=instance.instance_id in shared_ids,
                remote_log_dir=remote_log_dir,
                diagnostic_url=diagnostic_url,
            )
            tasks.append(asyncio.create_task(_worker(collector, results, stop, sessions)))

    aggregator = StateAggregator(status)
    summary = RunSummary(run_dir=run_dir)

    try:
        for _ in range(waits):
            record = await _next_result(results, stop)
            if record is None:
                logger.warning(
                    "exiting fetch logger (pending=%d)",
                    waits - aggregator.collected - aggregator.failed,
                )
                summary.cancelled = True
                await _drain_after_stop(tasks, results, aggregator)
                break
            aggregator.merge(record)
    finally:
        await _cancel_pending(tasks)

    status.sync()

    summary.total_files = aggregator.total_files
    summary.collected = aggregator.collected
    summary.failed = aggregator.failed
    logger.info(
        "wrote all log files (log_dir=%s, total_files=%d, failed=%d)",
        run_dir,
        summary.total_files,
        summary.failed,
    )
    return summary


async def _drain_after_stop(
    tasks: list["asyncio.Task[None]"],
    results: "asyncio.Queue[InstanceLogs]",
    aggregator: StateAggregator,
) -> None:
    """Merge queued records while running workers finish their current command."""
    pending = {task for task in tasks if not task.done()}
    while pending:
        get = asyncio.ensure_future(results.get())
        try:
            done, _ = await asyncio.wait({get, *pending}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not get.done():
                get.cancel()

        if get in done:
            aggregator.merge(get.result())
        pending = {task for task in pending if not task.done()}

    while not results.empty():
        aggregator.merge(results.get_nowait())


async def _cancel_pending(tasks: list["asyncio.Task[None]"]) -> None:
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        logger.debug("Cancelled %d pending collector task(s)", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)


class FleetLogCollector:
    """Entry point for fleet log collection and archival.

    Example:
        collector = FleetLogCollector(config, FleetStatus.load(config.status_path))
        summary = await collector.fetch_logs()
        await collector.download_logs("/tmp/artifacts", fetch=False)
    """

    def __init__(
        self,
        config: "Config",
        status: FleetStatus,
        session_factory: SessionFactory | None = None,
    ) -> None:
        if session_factory is None:
            session_factory = ssh_session_factory(config)

        self.config = config
        self.status = status
        self.session_factory = session_factory
        self._lock = asyncio.Lock()
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Signal running and future collections to exit early."""
        logger.info("Stopping fleet log collection")
        self._stop.set()

    async def fetch_logs(self) -> RunSummary:
        """Collect logs from the whole fleet.

        Raises:
            OSError: If the log directory or run directory cannot be created
            FleetStatusError: On unknown group or duplicate instance
        """
        settings = self.config.settings
        os.makedirs(self.config.log_dir, mode=0o700, exist_ok=True)

        async with self._lock:
            return await fetch_fleet_logs(
                self.status,
                self.session_factory,
                name=settings.name,
                log_dir=self.config.log_dir,
                qps=settings.qps,
                burst=settings.burst,
                stop=self._stop,
                verbose=settings.verbose,
                max_sessions=settings.max_sessions,
                remote_log_dir=settings.remote_log_dir,
                diagnostic_url=settings.diagnostic_url,
            )

    async def download_logs(self, artifact_dir: Path | str, fetch: bool = True) -> list[Path]:
        """Copy collected log files and the status document into artifact_dir.

        Args:
            artifact_dir: Destination directory (created if missing)
            fetch: Run fetch_logs() before copying

        Returns:
            Paths of the copied files, status document last
        """
        if fetch:
            await self.fetch_logs()

        artifact_dir = Path(artifact_dir)
        async with self._lock:
            return await asyncio.to_thread(self._copy_artifacts, artifact_dir)

    def _copy_artifacts(self, artifact_dir: Path) -> list[Path]:
        artifact_dir.mkdir(parents=True, exist_ok=True)
        copied: list[Path] = []
        for fpath in self.status.log_paths():
            target = artifact_dir / Path(fpath).name
            shutil.copyfile(fpath, target)
            copied.append(target)

        config_target = artifact_dir / self.status.path.name
        shutil.copyfile(self.status.path, config_target)
        copied.append(config_target)

        logger.info("copied %d file(s) to %s", len(copied), artifact_dir)
        return copied
