"""
Foreground tracking state machine.

Lives on the worker thread and receives every OS notification as a queued slot call,
so notifications are processed one at a time in arrival order. It filters storms and
duplicates before anything reaches the Reconciler, and owns the power-save override.
"""

import logging
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from refreshcontrol import constants
from refreshcontrol.core.backends import ForegroundSource
from refreshcontrol.core.reconciler import Reconciler

logger = logging.getLogger("RefreshControl.ForegroundTracker")


class ForegroundTracker(QObject):
    """
    Idle (no known app) / Tracking (has a last-known app).

    Signals:
        override_engaged (float): Power saving started; carries the rate to force.
        override_released (): Power saving ended.
        foreground_changed (str): A new foreground app passed the dedupe filter.
    """
    override_engaged = pyqtSignal(float)
    override_released = pyqtSignal()
    foreground_changed = pyqtSignal(str)

    def __init__(self, source: ForegroundSource, reconciler: Reconciler,
                 power_save_rate: float = constants.rates.modes.POWER_SAVE_RATE,
                 min_check_interval_ms: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.source = source
        self.reconciler = reconciler
        self.power_save_rate = float(power_save_rate)
        interval = constants.timers.MIN_CHECK_INTERVAL_MS if min_check_interval_ms is None else min_check_interval_ms
        self.min_check_interval = interval / 1000.0
        self._clock = clock
        self.logger = logger

        # ForegroundCache
        self.last_known_app_id: Optional[str] = None
        self.last_check_timestamp: Optional[float] = None

        self.override_active = False

    @property
    def is_tracking(self) -> bool:
        return self.last_known_app_id is not None

    @pyqtSlot()
    def on_task_stack_changed(self) -> None:
        now = self._clock()
        if self.last_check_timestamp is not None and now - self.last_check_timestamp < self.min_check_interval:
            self.logger.debug("Stack change %.1fms after the previous one, dropped.",
                              (now - self.last_check_timestamp) * 1000)
            return
        self.last_check_timestamp = now
        self.check_current_app()

    @pyqtSlot(str)
    def on_activity_pinned(self, app_id: str) -> None:
        self.logger.debug("Activity pinned: %s", app_id)

    @pyqtSlot()
    def on_activity_unpinned(self) -> None:
        self.logger.debug("Activity unpinned.")
        self.check_current_app()

    @pyqtSlot()
    def on_screen_off(self) -> None:
        self.logger.debug("Screen off, clearing last known app.")
        self.last_known_app_id = None

    @pyqtSlot()
    def on_screen_on(self) -> None:
        self.logger.debug("Screen on, forcing a check.")
        self.force_check()

    @pyqtSlot(bool)
    def on_power_mode_changed(self, is_power_save: bool) -> None:
        if is_power_save == self.override_active:
            return
        try:
            if is_power_save:
                self.override_active = True
                self.reconciler.note_override()
                self.logger.info("Power saving engaged, forcing %s Hz.", self.power_save_rate)
                self.override_engaged.emit(self.power_save_rate)
            else:
                self.override_active = False
                self.logger.info("Power saving released, resuming per-app control.")
                self.override_released.emit()
                self.force_check()
        except Exception as e:
            self.logger.error("Error handling power mode change: %s", e, exc_info=True)

    @pyqtSlot(str)
    def on_policy_edited(self, app_id: str) -> None:
        """Re-checks when the edited app is the one currently being tracked."""
        if app_id and app_id == self.last_known_app_id:
            self.logger.debug("Policy edited for foreground app %s, re-checking.", app_id)
            self.force_check()

    @pyqtSlot()
    def force_check(self) -> None:
        """Re-checks the foreground app bypassing every dedupe cache."""
        self.last_known_app_id = None
        self.reconciler.reset()
        self.check_current_app()

    @pyqtSlot()
    def check_current_app(self) -> None:
        if self.override_active:
            self.logger.debug("Override active, skipping foreground check.")
            return
        try:
            app_id = self.source.query_current_foreground()
        except Exception as e:
            self.logger.debug("Foreground query failed: %s", e)
            return
        if not app_id:
            self.logger.debug("No foreground app reported.")
            return
        if app_id == self.last_known_app_id:
            return

        self.last_known_app_id = app_id
        self.foreground_changed.emit(app_id)
        try:
            self.reconciler.reconcile(app_id)
        except Exception as e:
            self.logger.error("Reconciliation failed for %s: %s", app_id, e, exc_info=True)
