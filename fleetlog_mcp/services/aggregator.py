"""Folds per-instance result records into fleet status."""

import logging

from fleetlog_mcp.models import InstanceLogs
from fleetlog_mcp.services.status import FleetStatus

logger = logging.getLogger(__name__)


class FleetStatusError(Exception):
    """Result record violates a fleet status invariant."""


class UnknownGroupError(FleetStatusError):
    """Result record names a group that is not in fleet status."""

    def __init__(self, group: str):
        self.group = group
        super().__init__(f"group {group!r} is unknown")


class DuplicateInstanceLogsError(FleetStatusError):
    """Logs for the instance were already recorded."""

    def __init__(self, group: str, instance_id: str):
        self.group = group
        self.instance_id = instance_id
        super().__init__(f"group {group!r} logs for instance {instance_id!r} are redundant")


class StateAggregator:
    """Merges successful result records into fleet status.

    Every merge is synced immediately, so a crash mid-run loses only the
    records that were still in flight.
    """

    def __init__(self, status: FleetStatus) -> None:
        self.status = status
        self.total_files = 0
        self.collected = 0
        self.failed = 0

    def merge(self, record: InstanceLogs) -> None:
        """Merge one result record.

        Error records are logged and counted, not merged.

        Raises:
            UnknownGroupError: If the record's group is not in fleet status
            DuplicateInstanceLogsError: If the instance was already collected
        """
        if record.error is not None:
            self.failed += 1
            logger.error(
                "failed to fetch logs (group=%s, instance=%s): %s",
                record.group,
                record.instance_id,
                record.error,
            )
            return

        group = self.status.groups.get(record.group)
        if group is None:
            raise UnknownGroupError(record.group)
        if record.instance_id in group.logs:
            raise DuplicateInstanceLogsError(record.group, record.instance_id)

        group.logs[record.instance_id] = list(record.paths)
        self.status.sync()

        files = len(record.paths)
        self.total_files += files
        self.collected += 1
        logger.info(
            "wrote log files (instance=%s, files=%d, total_files=%d)",
            record.instance_id,
            files,
            self.total_files,
        )
