"""
Host-facing refresh-rate service.

Wires the reconciliation loop together across two threads:

- The thread that creates the service (the Qt main thread) owns the Debouncer and
  the ModeApplier; every write to the display and the rate settings happens here.
- A worker QThread owns the ForegroundTracker and, through it, the Reconciler.
  Notifications are delivered to it as queued slot calls, in arrival order.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from refreshcontrol import constants
from refreshcontrol.core.backends import ForegroundSource, NotificationSource, RateSink, SettingsBackend
from refreshcontrol.core.debouncer import Debouncer
from refreshcontrol.core.foreground_tracker import ForegroundTracker
from refreshcontrol.core.mode_applier import ModeApplier
from refreshcontrol.core.modes import Mode, ModeRates
from refreshcontrol.core.policy_store import PolicyStore
from refreshcontrol.core.reconciler import Reconciler

logger = logging.getLogger("RefreshControl.RefreshService")


class RefreshService(QObject):
    """
    Brings the reconciliation loop to life and exposes the policy to a host.

    Args:
        settings: Key/value backend holding the policy and the mirrored rates.
        sink: Display sink receiving (min, max) ranges.
        source: Reports the current foreground app.
        notifications: Emits the OS notifications; may be None when the host only
            edits the policy.
        config: Validated configuration dict (see `constants.config.defaults`).
    """
    _force_check_requested = pyqtSignal()
    _policy_edited = pyqtSignal(str)

    def __init__(self, settings: SettingsBackend, sink: RateSink, source: ForegroundSource,
                 notifications: Optional[NotificationSource] = None,
                 config: Optional[Dict[str, Any]] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.logger = logger
        self.config: Dict[str, Any] = dict(constants.config.defaults.DEFAULT_CONFIG)
        self.config.update(config or {})
        self.settings = settings
        self.sink = sink
        self.source = source
        self.notifications = notifications

        self.policy = PolicyStore(settings)
        self.applier = ModeApplier(sink, settings,
                                   restore_delay_ms=self.config["transition_restore_delay_ms"], parent=self)
        self.debouncer = Debouncer(self.config["debounce_ms"], parent=self)
        self.reconciler = Reconciler(
            self.policy, settings, self.applier, self.debouncer,
            mode_rates=ModeRates.from_config(self.config),
            default_rate=self.config["default_rate"],
        )
        self.tracker = ForegroundTracker(
            source, self.reconciler,
            power_save_rate=self._resolve_power_save_rate(),
            min_check_interval_ms=self.config["min_check_interval_ms"],
        )

        self.tracker.override_engaged.connect(self.debouncer.cancel)
        self.tracker.override_engaged.connect(self.applier.force_apply)
        self._force_check_requested.connect(self.tracker.force_check)
        self._policy_edited.connect(self.tracker.on_policy_edited)

        self.worker_thread = QThread()
        self.worker_thread.setObjectName(constants.app.WORKER_THREAD_NAME)
        self.tracker.moveToThread(self.worker_thread)

        self._connections: List[Tuple[Any, Any]] = []
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start_service(self) -> None:
        """Starts the loop and queues an initial forced check. Calling it again is a no-op."""
        if self._running:
            self.logger.debug("Service already running.")
            return
        self._running = True
        self.worker_thread.start()
        self._connect_notifications()

        if self.config["smooth_transitions"]:
            self.applier.enable_smooth_switching()
        self.policy.load()

        if self.notifications is not None:
            try:
                self.notifications.start()
            except Exception as e:
                self.logger.error("Failed to start notification source: %s", e, exc_info=True)

        self._force_check_requested.emit()
        self.logger.info("Refresh service started (power-save rate %s Hz).", self.tracker.power_save_rate)

    def stop_service(self) -> None:
        """Disconnects notifications, drops pending work and stops the worker thread."""
        if not self._running:
            return
        self._running = False
        self._disconnect_notifications()
        if self.notifications is not None:
            try:
                self.notifications.stop()
            except Exception as e:
                self.logger.error("Failed to stop notification source: %s", e, exc_info=True)
        self.debouncer.cancel()
        self.worker_thread.quit()
        if not self.worker_thread.wait(constants.timeouts.WORKER_THREAD_STOP_WAIT_MS):
            self.logger.warning("Worker thread did not stop within %d ms.",
                                constants.timeouts.WORKER_THREAD_STOP_WAIT_MS)
        self.logger.info("Refresh service stopped.")

    def cleanup(self) -> None:
        """Stops the service and disposes its timers. The service cannot be restarted afterwards."""
        self.stop_service()
        self.debouncer.cleanup()
        self.applier.cleanup()

    def get_state_for_package(self, app_id: str) -> Mode:
        return self.policy.get(app_id)

    def write_package(self, app_id: str, mode: Mode) -> None:
        """
        Stores the mode for `app_id`.

        While the service is running the edit is forwarded to the worker, which forces
        a re-check if the edited app is the current foreground app, so the new mode
        applies without waiting for the next foreground change.
        """
        self.policy.set(app_id, mode)
        if self._running and self.config["recheck_on_policy_edit"]:
            self._policy_edited.emit(app_id)

    def force_check(self) -> None:
        """Queues a forced foreground check on the worker."""
        self._force_check_requested.emit()

    def _resolve_power_save_rate(self) -> float:
        configured = self.config.get("power_save_rate")
        if configured is not None:
            return float(configured)
        supported_rates = getattr(self.sink, "supported_rates", None)
        if callable(supported_rates):
            try:
                rates = supported_rates()
                if rates:
                    return float(min(rates))
            except Exception as e:
                self.logger.debug("Could not query supported rates: %s", e)
        return constants.rates.modes.POWER_SAVE_RATE

    def _connect_notifications(self) -> None:
        if self.notifications is None:
            return
        pairs = [
            (self.notifications.task_stack_changed, self.tracker.on_task_stack_changed),
            (self.notifications.activity_pinned, self.tracker.on_activity_pinned),
            (self.notifications.activity_unpinned, self.tracker.on_activity_unpinned),
            (self.notifications.screen_on, self.tracker.on_screen_on),
            (self.notifications.screen_off, self.tracker.on_screen_off),
            (self.notifications.power_mode_changed, self.tracker.on_power_mode_changed),
        ]
        for signal, slot in pairs:
            signal.connect(slot)
        self._connections = pairs

    def _disconnect_notifications(self) -> None:
        for signal, slot in self._connections:
            try:
                signal.disconnect(slot)
            except TypeError:
                self.logger.debug("Notification signal was already disconnected.")
        self._connections = []
