"""
Applies refresh-rate ranges to the display and mirrors them into the settings backend.

Lives on the main thread. Every write goes through `apply`, which skips ranges equal
to the last one successfully applied, so repeated reconciliations of the same app
never touch the hardware twice.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from refreshcontrol import constants
from refreshcontrol.core.backends import RateSink, SettingsBackend
from refreshcontrol.core.modes import RateRange
from refreshcontrol.utils.helpers import format_rate_range
from refreshcontrol.utils.timer_utils import cleanup_timer, create_timer

logger = logging.getLogger("RefreshControl.ModeApplier")


class ModeApplier(QObject):
    """
    Owns the AppliedState and performs the write transaction.

    Signals:
        applied (float, float): Emitted with (min, max) after a successful write.
    """
    applied = pyqtSignal(float, float)

    def __init__(self, sink: RateSink, settings: SettingsBackend,
                 restore_delay_ms: Optional[int] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.sink = sink
        self.settings = settings
        self.logger = logger
        self._keys = constants.rates.keys
        self._applied: Optional[RateRange] = None
        self._saved_animation_scale: Optional[float] = None

        delay = constants.timers.TRANSITION_RESTORE_DELAY_MS if restore_delay_ms is None else int(restore_delay_ms)
        self._restore_timer = create_timer(self, self._restore_animation_scale, delay, single_shot=True)

    @property
    def applied_state(self) -> Optional[RateRange]:
        """Last range written successfully, or None while unknown."""
        return self._applied

    def reset(self) -> None:
        """Forgets the AppliedState so the next apply always writes."""
        self._applied = None

    def apply(self, min_rate: float, max_rate: float) -> bool:
        """
        Applies (min_rate, max_rate) unless it equals the AppliedState.

        Returns:
            bool: True if the external resource was written.
        """
        target = RateRange(float(min_rate), float(max_rate)).clamped()
        if target == self._applied:
            self.logger.debug("Range %s already applied, skipping.", format_rate_range(target.as_tuple()))
            return False

        try:
            self._suppress_transition()
            self.sink.set_range(target.min_rate, target.max_rate)
            self._mirror_settings(target, include_user_rate=True)
        except Exception as e:
            self.logger.error("Failed to apply %s: %s. Falling back to a bare write.",
                              format_rate_range(target.as_tuple()), e, exc_info=True)
            try:
                self.sink.set_range(target.min_rate, target.max_rate)
                self._mirror_settings(target, include_user_rate=False)
            except Exception as fallback_error:
                self.logger.error("Fallback write failed: %s", fallback_error, exc_info=True)
                return False

        self._record(target)
        return True

    @pyqtSlot(float)
    def force_apply(self, rate: float) -> None:
        """Immediately pins min = max = rate, bypassing idempotence and debouncing."""
        target = RateRange(float(rate), float(rate))
        try:
            self.sink.set_range(target.min_rate, target.max_rate)
            self._mirror_settings(target, include_user_rate=True)
        except Exception as e:
            self.logger.error("Failed to force %s: %s", format_rate_range(target.as_tuple()), e, exc_info=True)
            return
        self._record(target)

    def enable_smooth_switching(self) -> None:
        """Best-effort startup tweak of the transition parameters."""
        try:
            self.settings.put_float(self._keys.SMOOTH_DISPLAY_SWITCH, 1.0)
            self.settings.put_float(self._keys.ANIMATOR_DURATION_SCALE, 0.5)
            self.logger.debug("Smooth display switching enabled.")
        except Exception as e:
            self.logger.debug("Could not enable smooth display switching: %s", e)

    def cleanup(self) -> None:
        """Restores any suppressed animation scale and disposes the restore timer."""
        if self._restore_timer is not None and self._restore_timer.isActive():
            self._restore_timer.stop()
            self._restore_animation_scale()
        cleanup_timer(self._restore_timer)
        self._restore_timer = None

    def _record(self, target: RateRange) -> None:
        self._applied = target
        self.logger.info("Applied refresh range %s", format_rate_range(target.as_tuple()))
        self.applied.emit(target.min_rate, target.max_rate)

    def _mirror_settings(self, target: RateRange, include_user_rate: bool) -> None:
        self.settings.put_float(self._keys.MIN_REFRESH_RATE, target.min_rate)
        self.settings.put_float(self._keys.PEAK_REFRESH_RATE, target.max_rate)
        if include_user_rate:
            self.settings.put_float(self._keys.USER_REFRESH_RATE, target.max_rate)

    def _suppress_transition(self) -> None:
        """Zeroes the window animation scale until the restore timer fires."""
        if self._restore_timer is None:
            return
        try:
            if self._saved_animation_scale is None:
                self._saved_animation_scale = self.settings.get_float(self._keys.WINDOW_ANIMATION_SCALE, 1.0)
            self.settings.put_float(self._keys.WINDOW_ANIMATION_SCALE, 0.0)
            self._restore_timer.start()
        except Exception as e:
            self.logger.debug("Could not suppress window animations: %s", e)

    def _restore_animation_scale(self) -> None:
        saved, self._saved_animation_scale = self._saved_animation_scale, None
        if saved is None:
            return
        try:
            self.settings.put_float(self._keys.WINDOW_ANIMATION_SCALE, saved)
        except Exception as e:
            self.logger.debug("Could not restore window animation scale: %s", e)
