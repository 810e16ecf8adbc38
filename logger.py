"""Console logging setup shared by the backend."""
from __future__ import annotations

import logging
import sys
from datetime import datetime

from constants import C_BLUE, C_BOLD, C_GREEN, C_GREY, C_RED, C_RESET, C_YELLOW

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LEVEL_COLORS = {
    logging.ERROR: C_RED + C_BOLD,
    logging.CRITICAL: C_RED + C_BOLD,
    logging.WARNING: C_YELLOW + C_BOLD,
    SUCCESS: C_GREEN + C_BOLD,
    logging.INFO: C_BLUE + C_BOLD,
    logging.DEBUG: C_GREY,
}


class ColorFormatter(logging.Formatter):
    """Renders `<time> [LEVEL] message` with the level name coloured."""

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.upper()
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if not self.use_color:
            return f"{ts} [{level}] {message}"
        color = LEVEL_COLORS.get(record.levelno, "")
        return f"{C_GREY}{ts}{C_RESET} [{color}{level}{C_RESET}] {message}"


def setup_logging(level: str | int = "INFO", stream=None) -> logging.Logger:
    """Installs a single colour console handler on the root logger."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    stream = stream or sys.stdout
    for handler in list(root.handlers):
        if getattr(handler, "_mev_console", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(use_color=hasattr(stream, "isatty") and stream.isatty()))
    handler._mev_console = True
    root.addHandler(handler)

    # aiohttp logs every request at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    return root


def log_success(logger: logging.Logger, message: str, *args) -> None:
    logger.log(SUCCESS, message, *args)
