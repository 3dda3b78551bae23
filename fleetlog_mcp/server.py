"""fleetlog MCP FastMCP server.

This is a thin wrapper that wires together the MCP server with tools and resources.
All collection logic is delegated to the services/ modules.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from fleetlog_mcp.resources import fleet_status_resource
from fleetlog_mcp.services import get_collector
from fleetlog_mcp.tools import download_logs, fetch_logs
from fleetlog_mcp.utils.console import FleetLogFormatter


def _configure_logging() -> None:
    """Configure colorful logging for the fleetlog_mcp package.

    This is called at module load time to ensure logging is configured
    before any loggers are used, regardless of how the server is started.
    """
    log_level = os.getenv("FLEETLOG_LOG_LEVEL", "INFO").upper()
    use_colors = os.getenv("FLEETLOG_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    fleet_logger = logging.getLogger("fleetlog_mcp")
    fleet_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not fleet_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(FleetLogFormatter(use_colors=use_colors))
        fleet_logger.addHandler(handler)
        fleet_logger.propagate = False

    # Suppress noisy third-party loggers
    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "asyncssh",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Load fleet status at startup and persist it on shutdown.

    Args:
        server: The FastMCP server instance

    Yields:
        Dict with fleet group names
    """
    logger.info("fleetlog MCP server starting up")

    collector = get_collector()
    status = collector.status
    logger.info(
        "Loaded fleet %s: %d group(s), %d instance(s) from %s",
        status.name or "(unnamed)",
        len(status.groups),
        status.instance_count,
        status.path,
    )
    logger.info("fleetlog MCP server ready to accept connections")

    try:
        yield {"groups": sorted(status.groups)}
    finally:
        logger.info("fleetlog MCP server shutting down")
        collector.stop()
        status.sync()
        logger.info("fleetlog MCP server shutdown complete")


def create_server() -> FastMCP:
    """Create and configure the MCP server with tools and resources.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP(
        "fleetlog_mcp",
        lifespan=app_lifespan,
    )

    server.tool()(fetch_logs)
    server.tool()(download_logs)

    server.resource("fleet://status")(fleet_status_resource)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
