"""
Provides centralized, immutable constants for the RefreshControl application.

This package exposes singleton instances of constant groups, ensuring they
are validated on import and easily accessible from a single namespace.

Usage:
    from refreshcontrol import constants

    constants.app.APP_NAME
    constants.rates.modes.STANDARD_RATE
    constants.rates.keys.PEAK_REFRESH_RATE
    constants.timers.DEBOUNCE_DELAY_MS
"""

from .app import app
from .config import config
from .logs import logs
from .rates import rates
from .timeouts import timeouts
from .timers import timers

__all__ = [
    "app",
    "config",
    "logs",
    "rates",
    "timeouts",
    "timers",
]
