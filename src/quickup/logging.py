"""Logging configuration for quickup CLI."""

import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

FILE_LOG_FORMAT = "[%(asctime)s] %(message)s"
FILE_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1+=debug)
        quiet: Suppress non-warning output (takes precedence over verbosity)
        no_color: Disable colored output
        stream: Output stream for logs (defaults to stderr)

    Returns:
        Configured Rich console for output
    """
    if quiet:
        level = LogLevel.QUIET
    elif verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    console = Console(
        file=stream or sys.stderr,
        force_terminal=not no_color,
        no_color=no_color,
    )

    handler = RichHandler(
        console=console,
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return console


def attach_file_log(log_file: Path) -> logging.Handler | None:
    """Mirror log records into the persistent update log.

    Every run appends to ``<data_root>/logs/update.log`` with timestamped
    lines. A log file that cannot be opened only costs the mirror.

    Returns:
        The attached handler, or None if the file could not be opened
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Cannot write update log %s: %s", log_file, e)
        return None

    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=FILE_LOG_DATEFMT))
    logging.getLogger().addHandler(handler)
    return handler


def detach_file_log(handler: logging.Handler | None) -> None:
    """Remove and close a handler returned by attach_file_log."""
    if handler is None:
        return
    logging.getLogger().removeHandler(handler)
    handler.close()
