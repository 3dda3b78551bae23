"""Tests for the MCP tools and the fleet status resource."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from fleetlog_mcp.config import Config, HostKeyVerifier, Settings
from fleetlog_mcp.resources import fleet_status_resource
from fleetlog_mcp.services import FleetLogCollector, reset_state, set_collector
from fleetlog_mcp.services.status import FleetStatus
from fleetlog_mcp.tools import download_logs, fetch_logs

from conftest import FILES_PER_INSTANCE, FakeSessionFactory


@pytest.fixture
def factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def collector(
    fleet_status: FleetStatus, factory: FakeSessionFactory, tmp_path: Path
) -> Iterator[FleetLogCollector]:
    """Install a collector with fake sessions as global state."""
    settings = Settings(name="tools", log_dir=str(tmp_path / "logs"), qps=1000.0, burst=100)
    config = Config(settings=settings, host_keys=HostKeyVerifier("none"))
    collector = FleetLogCollector(config, fleet_status, factory)
    set_collector(collector)
    yield collector
    reset_state()


@pytest.mark.asyncio
async def test_fetch_logs_reports_summary(collector: FleetLogCollector) -> None:
    result = await fetch_logs()

    assert "Instances collected: 3" in result
    assert "Instances failed: 0" in result
    assert f"Files written: {3 * FILES_PER_INSTANCE}" in result
    assert "cancelled" not in result


@pytest.mark.asyncio
async def test_fetch_logs_reports_failures(
    collector: FleetLogCollector, factory: FakeSessionFactory
) -> None:
    factory.overrides["i-0aaa2222"] = {"fail_on": "journalctl"}

    result = await fetch_logs()

    assert "Instances collected: 2" in result
    assert "Instances failed: 1" in result


@pytest.mark.asyncio
async def test_fetch_logs_twice_returns_error(collector: FleetLogCollector) -> None:
    await fetch_logs()

    result = await fetch_logs()

    assert result.startswith("Error:")
    assert "redundant" in result


@pytest.mark.asyncio
async def test_fetch_logs_after_stop_reports_cancelled(collector: FleetLogCollector) -> None:
    collector.stop()

    result = await fetch_logs()

    assert "Run was cancelled before all instances reported" in result
    assert "Instances collected: 0" in result


@pytest.mark.asyncio
async def test_download_logs_copies_files(
    collector: FleetLogCollector, tmp_path: Path
) -> None:
    artifact_dir = tmp_path / "artifacts"

    result = await download_logs(str(artifact_dir))

    assert result == f"Copied {3 * FILES_PER_INSTANCE + 1} file(s) to {artifact_dir}"
    assert (artifact_dir / "fleetlog.json").exists()


@pytest.mark.asyncio
async def test_download_logs_without_fetch_copies_status_only(
    collector: FleetLogCollector, tmp_path: Path
) -> None:
    result = await download_logs(str(tmp_path / "artifacts"), fetch=False)

    assert result.startswith("Copied 1 file(s)")


@pytest.mark.asyncio
async def test_download_logs_reports_copy_errors(
    collector: FleetLogCollector, tmp_path: Path
) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    result = await download_logs(str(blocker / "artifacts"), fetch=False)

    assert result.startswith("Error:")


@pytest.mark.asyncio
async def test_fleet_status_resource_lists_collection_state(
    collector: FleetLogCollector,
) -> None:
    before = await fleet_status_resource()
    assert before.startswith("Fleet test-fleet:")
    assert "ng-a (2 instance(s))" in before
    assert "ng-b (1 instance(s))" in before
    assert before.count("not collected") == 3

    await fetch_logs()

    after = await fleet_status_resource()
    assert "not collected" not in after
    assert after.count(f"{FILES_PER_INSTANCE} file(s)") == 3
    assert "3.1.9.9" in after


@pytest.mark.asyncio
async def test_fleet_status_resource_empty_fleet(tmp_path: Path) -> None:
    config = Config(settings=Settings(), host_keys=HostKeyVerifier("none"))
    set_collector(FleetLogCollector(config, FleetStatus(tmp_path / "empty.json")))
    try:
        assert await fleet_status_resource() == "No fleet groups configured."
    finally:
        reset_state()
