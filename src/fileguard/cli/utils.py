"""Utility functions for CLI module."""

import logging
import os
import platform
import sys
from pathlib import Path

from rich.console import Console

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_console() -> Console:
    """Create Rich console with proper encoding for Windows.

    On Windows in non-interactive mode (subprocess, pipe, etc.), the default
    encoding is often CP1252 which cannot handle Unicode characters. This
    function forces UTF-8 in that case.

    Returns:
        Console: Configured Rich console instance
    """
    if platform.system() == "Windows" and not sys.stdout.isatty():
        os.environ["PYTHONIOENCODING"] = "utf-8"
        return Console(legacy_windows=False)
    return Console()


def get_error_console() -> Console:
    """Console bound to stderr, so errors never mix with piped file content."""
    return Console(stderr=True)


def setup_logging(level: str = "warning", log_file: str | None = None) -> None:
    """Configure the root logger for a CLI run.

    Args:
        level: Log level name (debug, info, warning, error, critical)
        log_file: Append log records to this file instead of stderr
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=numeric_level,
            format=LOG_FORMAT,
            filename=log_file,
            filemode="a",
            force=True,
        )
    else:
        logging.basicConfig(
            level=numeric_level,
            format=LOG_FORMAT,
            stream=sys.stderr,
            force=True,
        )
