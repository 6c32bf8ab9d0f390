"""
System Event Handler Module.

Centralizes the low-level Windows notifications the refresh service reacts to:
WinEventHooks for foreground changes and window restores, and power-setting
notifications for display state and battery saver. It abstracts the raw win32 API
calls and exposes them as the Qt signals of a notification source.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from refreshcontrol.utils.power_event_hook import (
    DISPLAY_STATE_OFF,
    PowerEventHook,
)
from refreshcontrol.utils.win_event_hook import (
    EVENT_SYSTEM_FOREGROUND,
    EVENT_SYSTEM_MINIMIZEEND,
    WinEventHook,
)


class SystemEventHandler(QObject):
    """
    Windows notification source for the ForegroundTracker.

    Signals:
        task_stack_changed (void): The foreground window changed.
        activity_pinned (str): Never emitted on Windows; kept for interface parity.
        activity_unpinned (void): A minimized window was restored.
        screen_on (void): The console display turned on.
        screen_off (void): The console display turned off.
        power_mode_changed (bool): Battery saver turned on (True) or off (False).
    """

    task_stack_changed = pyqtSignal()
    activity_pinned = pyqtSignal(str)
    activity_unpinned = pyqtSignal()
    screen_on = pyqtSignal()
    screen_off = pyqtSignal()
    power_mode_changed = pyqtSignal(bool)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger("RefreshControl.SystemEventHandler")

        # Hooks
        self.foreground_hook: Optional[WinEventHook] = None
        self.restore_hook: Optional[WinEventHook] = None
        self.power_hook: Optional[PowerEventHook] = None

        # State
        self._display_state: Optional[int] = None

    def start(self) -> None:
        """Starts all hooks."""
        self.logger.debug("Starting SystemEventHandler...")
        self._setup_hooks()
        self.logger.debug("SystemEventHandler started.")

    def stop(self) -> None:
        """Stops all hooks."""
        self.logger.debug("Stopping SystemEventHandler...")
        for hook in (self.foreground_hook, self.restore_hook, self.power_hook):
            if hook:
                hook.stop()
        self.foreground_hook = None
        self.restore_hook = None
        self.power_hook = None

    def _setup_hooks(self) -> None:
        """Initializes and starts the WinEvent and power hooks."""
        try:
            # 1. Foreground hook
            self.foreground_hook = WinEventHook(EVENT_SYSTEM_FOREGROUND, parent=self)
            self.foreground_hook.event_triggered.connect(self._on_foreground_changed)
            self.foreground_hook.start()

            # 2. Restore-from-minimized hook
            self.restore_hook = WinEventHook(EVENT_SYSTEM_MINIMIZEEND, parent=self)
            self.restore_hook.event_triggered.connect(self._on_window_restored)
            self.restore_hook.start()

            # 3. Display and battery-saver notifications
            self.power_hook = PowerEventHook(parent=self)
            self.power_hook.display_state_changed.connect(self._on_display_state_changed)
            self.power_hook.power_saving_changed.connect(self.power_mode_changed)
            self.power_hook.start()

        except Exception as e:
            self.logger.error("Error setting up hooks: %s", e, exc_info=True)

    def _on_foreground_changed(self, hwnd: int) -> None:
        self.task_stack_changed.emit()

    def _on_window_restored(self, hwnd: int) -> None:
        self.activity_unpinned.emit()

    def _on_display_state_changed(self, state: int) -> None:
        """Maps display state to on/off; dimming is treated as on and repeats are dropped."""
        is_on = state != DISPLAY_STATE_OFF
        was_on = None if self._display_state is None else self._display_state != DISPLAY_STATE_OFF
        self._display_state = state
        if is_on == was_on:
            return
        if is_on:
            self.logger.debug("Display on (state %d).", state)
            self.screen_on.emit()
        else:
            self.logger.debug("Display off.")
            self.screen_off.emit()
