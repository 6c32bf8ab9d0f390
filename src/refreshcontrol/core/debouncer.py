"""
Debounced execution of the final apply step.

A single-shot QTimer owned by the Debouncer holds at most one pending unit of work;
scheduling again restarts the timer with the new work ("latest wins"). The work runs
on the thread the Debouncer lives in. Calls made from other threads are marshaled
there through queued signals, so the worker never blocks on the apply.
"""

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from refreshcontrol import constants
from refreshcontrol.utils.timer_utils import cleanup_timer, create_timer

logger = logging.getLogger("RefreshControl.Debouncer")


class Debouncer(QObject):
    """
    Coalesces bursts of apply requests into one.

    Signals:
        fired (str): Target id of each unit of work that ran.
    """
    fired = pyqtSignal(str)

    _schedule_requested = pyqtSignal(str, object)
    _cancel_requested = pyqtSignal()

    def __init__(self, delay_ms: Optional[int] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.logger = logger
        self.delay_ms = constants.timers.DEBOUNCE_DELAY_MS if delay_ms is None else int(delay_ms)
        self._pending_target: Optional[str] = None
        self._pending_work: Optional[Callable[[], object]] = None
        self._timer = create_timer(self, self._run_pending, self.delay_ms, single_shot=True)

        self._schedule_requested.connect(self._on_schedule_requested)
        self._cancel_requested.connect(self._on_cancel_requested)

    def schedule(self, target_app_id: str, work: Callable[[], object]) -> None:
        """Replaces any pending work with `work`, to run after the debounce delay."""
        if not callable(work):
            raise ValueError(f"Work must be callable, got {type(work)}")
        self._schedule_requested.emit(target_app_id or "", work)

    @pyqtSlot()
    def cancel(self) -> None:
        """Drops the pending work, if any."""
        self._cancel_requested.emit()

    def is_pending(self) -> bool:
        return self._pending_work is not None

    def cleanup(self) -> None:
        self._on_cancel_requested()
        cleanup_timer(self._timer)
        self._timer = None

    @pyqtSlot(str, object)
    def _on_schedule_requested(self, target_app_id: str, work: Callable[[], object]) -> None:
        if self._timer is None:
            self.logger.debug("Debouncer already cleaned up, dropping work for %s", target_app_id)
            return
        if self._pending_work is not None:
            self.logger.debug("Superseding pending work for %s with %s", self._pending_target, target_app_id)
        self._pending_target = target_app_id
        self._pending_work = work
        self._timer.start()

    @pyqtSlot()
    def _on_cancel_requested(self) -> None:
        if self._timer is not None:
            self._timer.stop()
        if self._pending_work is not None:
            self.logger.debug("Cancelled pending work for %s", self._pending_target)
        self._pending_target = None
        self._pending_work = None

    def _run_pending(self) -> None:
        target, work = self._pending_target, self._pending_work
        self._pending_target = None
        self._pending_work = None
        if work is None:
            return
        try:
            work()
        except Exception as e:
            self.logger.error("Debounced work for %s failed: %s", target, e, exc_info=True)
        self.fired.emit(target or "")
