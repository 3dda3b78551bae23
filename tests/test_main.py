"""Tests for main entry point."""

from unittest.mock import MagicMock, patch


class TestMain:
    """Tests for __main__ module."""

    def test_runs_with_http_transport_by_default(self) -> None:
        mock_mcp = MagicMock()
        mock_config = MagicMock()
        mock_config.transport = "http"
        mock_config.http_host = "127.0.0.1"
        mock_config.http_port = 8000

        with patch("fleetlog_mcp.__main__.mcp", mock_mcp), \
             patch("fleetlog_mcp.__main__.get_config", return_value=mock_config):
            from fleetlog_mcp.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(
            transport="http",
            host="127.0.0.1",
            port=8000,
        )

    def test_runs_with_stdio_when_configured(self) -> None:
        mock_mcp = MagicMock()
        mock_config = MagicMock()
        mock_config.transport = "stdio"

        with patch("fleetlog_mcp.__main__.mcp", mock_mcp), \
             patch("fleetlog_mcp.__main__.get_config", return_value=mock_config):
            from fleetlog_mcp.__main__ import run_server
            run_server()

        mock_mcp.run.assert_called_once_with(transport="stdio")
