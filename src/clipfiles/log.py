"""
Logging setup for the clipfiles CLI.
"""

from __future__ import annotations

import logging
import sys
from typing import Dict, Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

LOG_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}
DEFAULT_LOG_LEVEL = "warning"

SUCCESS = logging.INFO + 5
logging.addLevelName(SUCCESS, "SUCCESS")

_COLORS: Dict[int, str] = {
    logging.DEBUG: Style.DIM,
    SUCCESS: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class ColorFormatter(logging.Formatter):
    """``[clipfiles]``-prefixed messages, coloured by level."""

    def __init__(self, color: bool = True) -> None:
        super().__init__("[clipfiles] %(levelname)s: %(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        color = _COLORS.get(record.levelno)
        if self.color and color:
            return color + msg + Style.RESET_ALL
        return msg


def setup_logging(level: str = DEFAULT_LOG_LEVEL, stream: Optional[TextIO] = None) -> logging.Logger:
    """Configure the ``clipfiles`` logger once for this process."""
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'")
    stream = stream or sys.stderr
    just_fix_windows_console()

    logger = logging.getLogger("clipfiles")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(color=stream.isatty()))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVELS[level])
    return logger
