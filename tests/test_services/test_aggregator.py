"""Tests for merging result records into fleet status."""

import json
from pathlib import Path

import pytest

from fleetlog_mcp.models import InstanceLogs
from fleetlog_mcp.services.aggregator import (
    DuplicateInstanceLogsError,
    FleetStatusError,
    StateAggregator,
    UnknownGroupError,
)
from fleetlog_mcp.services.status import FleetStatus


def test_merge_records_paths_and_syncs(fleet_status: FleetStatus, status_path: Path) -> None:
    aggregator = StateAggregator(fleet_status)

    aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", paths=["/l/a", "/l/b"]))

    assert fleet_status.groups["ng-a"].logs == {"i-0aaa1111": ["/l/a", "/l/b"]}
    assert aggregator.total_files == 2
    assert aggregator.collected == 1

    on_disk = json.loads(status_path.read_text())
    assert on_disk["groups"]["ng-a"]["logs"] == {"i-0aaa1111": ["/l/a", "/l/b"]}


def test_merge_accumulates_totals(fleet_status: FleetStatus) -> None:
    aggregator = StateAggregator(fleet_status)

    aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", paths=["/l/a"]))
    aggregator.merge(InstanceLogs("ng-b", "i-0bbb1111", paths=["/l/b", "/l/c"]))

    assert aggregator.total_files == 3
    assert aggregator.collected == 2


def test_merge_error_record_is_counted_not_merged(
    fleet_status: FleetStatus, status_path: Path
) -> None:
    before = status_path.read_text()
    aggregator = StateAggregator(fleet_status)

    aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", error=OSError("refused")))

    assert aggregator.failed == 1
    assert aggregator.collected == 0
    assert fleet_status.groups["ng-a"].logs == {}
    assert status_path.read_text() == before


def test_merge_unknown_group_raises(fleet_status: FleetStatus) -> None:
    aggregator = StateAggregator(fleet_status)

    with pytest.raises(UnknownGroupError, match="group 'ng-x' is unknown"):
        aggregator.merge(InstanceLogs("ng-x", "i-0aaa1111", paths=["/l/a"]))


def test_merge_duplicate_instance_raises(fleet_status: FleetStatus) -> None:
    aggregator = StateAggregator(fleet_status)
    aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", paths=["/l/a"]))

    with pytest.raises(DuplicateInstanceLogsError) as exc_info:
        aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", paths=["/l/z"]))

    assert "redundant" in str(exc_info.value)
    assert fleet_status.groups["ng-a"].logs["i-0aaa1111"] == ["/l/a"]


def test_errors_share_base_class() -> None:
    assert issubclass(UnknownGroupError, FleetStatusError)
    assert issubclass(DuplicateInstanceLogsError, FleetStatusError)


def test_merge_copies_paths(fleet_status: FleetStatus) -> None:
    paths = ["/l/a"]
    aggregator = StateAggregator(fleet_status)

    aggregator.merge(InstanceLogs("ng-a", "i-0aaa1111", paths=paths))
    paths.append("/l/b")

    assert fleet_status.groups["ng-a"].logs["i-0aaa1111"] == ["/l/a"]
