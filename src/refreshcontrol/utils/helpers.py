"""
Helper utilities for RefreshControl.

This module provides foundational functions for directory management and the
formatting of refresh rates in log and console output.
"""

import os
import logging
from typing import Optional, Tuple
from pathlib import Path

from refreshcontrol import constants


def get_app_data_path() -> Path:
    """
    Retrieve the per-user application data directory.

    Uses %APPDATA% on Windows and falls back to the home directory elsewhere.
    The directory is created if needed and checked for writability.
    """
    logger: logging.Logger = logging.getLogger(__name__)
    appdata: Optional[str] = os.getenv("APPDATA")
    if not appdata:
        appdata = os.path.expanduser("~")
        logger.debug("APPDATA environment variable not set, using home directory: %s", appdata)
    path: Path = Path(appdata) / constants.app.APP_NAME
    try:
        path.mkdir(parents=True, exist_ok=True)
        test_file = path / f".rc_write_test_{os.getpid()}"
        with open(test_file, 'w') as f:
            f.write("test")
        test_file.unlink()
        return path
    except PermissionError as e:
        logger.error("Permission denied creating/writing to app data directory %s: %s", path, e)
        raise PermissionError(f"Cannot access app data directory: {path}. Please check permissions.") from e
    except OSError as e:
        logger.error("Failed to create or verify app data directory %s: %s", path, e)
        raise OSError(f"Error with app data directory: {path}. Check disk space or path validity.") from e


def format_rate(rate: Optional[float]) -> str:
    """Formats a refresh rate for display, e.g. ``120 Hz`` or ``59.94 Hz``."""
    if rate is None:
        return "unknown"
    if float(rate).is_integer():
        return f"{int(rate)} Hz"
    return f"{rate:.2f} Hz"


def format_rate_range(rate_range: Optional[Tuple[float, float]]) -> str:
    """Formats a (min, max) pair as ``60 Hz - 120 Hz``."""
    if rate_range is None:
        return "unknown"
    min_rate, max_rate = rate_range
    return f"{format_rate(min_rate)} - {format_rate(max_rate)}"
