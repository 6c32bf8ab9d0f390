"""
Timer utilities for RefreshControl.

Small helpers around QTimer used by the debouncer and the mode applier, so every
timer in the application is created with the same validation and torn down the
same way.
"""

from typing import Optional, Callable
import logging
from PyQt6.QtCore import QTimer, QObject

logger = logging.getLogger("RefreshControl.TimerUtils")


def create_timer(parent: QObject, callback: Callable[[], None], interval: int, single_shot: bool = False) -> QTimer:
    """
    Create and configure a QTimer instance with the specified callback and interval.

    Args:
        parent: The parent QObject for the timer. The timer lives in the parent's thread.
        callback: The function to call when the timer triggers.
        interval: The timer interval in milliseconds (must be non-negative).
        single_shot: If True, the timer runs once per start(); if False, it repeats.

    Returns:
        QTimer: The configured timer instance, ready to be started.

    Raises:
        ValueError: If `interval` is negative or `callback` is not callable.
        RuntimeError: If timer creation fails due to Qt or system issues.
    """
    if not callable(callback):
        logger.error("Callback must be callable, got %s", type(callback))
        raise ValueError(f"Callback must be callable, got {type(callback)}")
    if interval < 0:
        logger.error("Interval cannot be negative: %d", interval)
        raise ValueError(f"Interval cannot be negative: {interval}")

    try:
        timer = QTimer(parent)
        timer.timeout.connect(callback)
        timer.setInterval(interval)
        timer.setSingleShot(single_shot)
        logger.debug("Timer created with interval %dms, single_shot=%s", interval, single_shot)
        return timer
    except Exception as e:
        logger.error("Failed to create timer: %s", e)
        raise RuntimeError(f"Failed to create timer: {e}") from e


def cleanup_timer(timer: Optional[QTimer]) -> None:
    """
    Stop a QTimer, disconnect its slots and schedule it for deletion.

    Args:
        timer: The QTimer to dispose of. If None, the function does nothing.
    """
    if timer is None:
        return

    if timer.isActive():
        timer.stop()
    try:
        timer.timeout.disconnect()
    except TypeError:
        logger.debug("No slots were connected to timer")
    timer.deleteLater()
