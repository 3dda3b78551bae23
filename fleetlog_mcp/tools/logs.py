"""Fleet log collection tools."""

import logging

from fleetlog_mcp.services import FleetStatusError, RunSummary, get_collector

logger = logging.getLogger(__name__)


def _format_summary(summary: RunSummary) -> str:
    lines = [f"═══ {summary.run_dir} " + "═" * 20]
    lines.append(f"Instances collected: {summary.collected}")
    lines.append(f"Instances failed: {summary.failed}")
    lines.append(f"Files written: {summary.total_files}")
    if summary.cancelled:
        lines.append("Run was cancelled before all instances reported")
    return "\n".join(lines)


async def fetch_logs() -> str:
    """Collect diagnostic logs from every instance of every fleet group.

    Runs journal, systemd service, IPAM and log directory collection over
    SSH against every instance in the fleet, writing files to a new run
    directory and recording them in fleet status. Fails with a
    duplicate-instance error if fleet status already holds logs for any
    instance, so a second run needs a fresh status document.

    Returns:
        Summary of the run, or an error message.
    """
    collector = get_collector()
    try:
        summary = await collector.fetch_logs()
    except (FleetStatusError, OSError, ValueError) as e:
        logger.error("fetch_logs failed: %s", e)
        return f"Error: {e}"
    return _format_summary(summary)


async def download_logs(artifact_dir: str, fetch: bool = True) -> str:
    """Copy collected fleet logs and the status document into a directory.

    Args:
        artifact_dir: Local destination directory.
        fetch: Collect logs first (default True). Set False to only copy
            files recorded by earlier runs.

    Returns:
        Number of files copied, or an error message.
    """
    collector = get_collector()
    try:
        copied = await collector.download_logs(artifact_dir, fetch=fetch)
    except (FleetStatusError, OSError, ValueError) as e:
        logger.error("download_logs failed: %s", e)
        return f"Error: {e}"
    return f"Copied {len(copied)} file(s) to {artifact_dir}"
