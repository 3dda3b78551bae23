"""Colorful console logging formatter with UTC timestamps."""

import logging
import re
from datetime import datetime, timezone

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "fleetlog_mcp.server": COLORS["bright_cyan"],
    "fleetlog_mcp.services.fleet": COLORS["bright_magenta"],
    "fleetlog_mcp.services.collector": COLORS["bright_blue"],
    "fleetlog_mcp.services.aggregator": COLORS["magenta"],
    "fleetlog_mcp.services.session": COLORS["cyan"],
    "fleetlog_mcp.services": COLORS["blue"],
    "fleetlog_mcp.config": COLORS["green"],
    "default": COLORS["white"],
}

INSTANCE_PATTERN = re.compile(r"\b(i-[0-9a-f]{8,17})\b")
DURATION_PATTERN = re.compile(r"(\d+\.?\d*m?s)\b")
COUNT_PATTERN = re.compile(r"((?:files|total_files|failed)=\d+)")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with UTC timestamps and component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d} {dt.strftime('%m/%d')}"

    def _format_level(self, record: logging.LogRecord) -> str:
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name
        # Shorten common prefixes
        if name.startswith("fleetlog_mcp."):
            name = name[len("fleetlog_mcp."):]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<20}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and UTC timestamp."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])

        message = self._highlight_message(record.getMessage())
        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight instance IDs, durations and counters in log messages."""
        if not self.use_colors:
            return message

        message = INSTANCE_PATTERN.sub(
            f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
        )
        message = COUNT_PATTERN.sub(f"{COLORS['cyan']}\\1{COLORS['reset']}", message)
        message = DURATION_PATTERN.sub(
            f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
        )
        return message


class FleetLogFormatter(ColorfulFormatter):
    """Extended formatter with markers for collection lifecycle events."""

    def format(self, record: logging.LogRecord) -> str:
        """Format with a leading marker for notable events."""
        base = super().format(record)

        if not self.use_colors:
            return base

        message = record.getMessage().lower()

        if "starting" in message or "ready" in message:
            return f"{COLORS['bright_green']}>>>{COLORS['reset']} {base}"
        elif "shutting down" in message or "exiting" in message:
            return f"{COLORS['bright_red']}<<<{COLORS['reset']} {base}"
        elif message.startswith("wrote"):
            return f"{COLORS['bright_green']}OK{COLORS['reset']}  {base}"
        elif "error" in message or "failed" in message:
            return f"{COLORS['bright_red']}!!{COLORS['reset']}  {base}"
        elif "waiting" in message or "renamed" in message:
            return f"{COLORS['bright_yellow']}!{COLORS['reset']}   {base}"
        elif "connecting" in message or "fetching" in message:
            return f"{COLORS['bright_cyan']}+{COLORS['reset']}   {base}"

        return f"    {base}"
