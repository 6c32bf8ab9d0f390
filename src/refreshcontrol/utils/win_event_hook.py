"""
Windows System Event Hook Utility.

Provides a threaded listener for a system-wide WinEvent (foreground changes,
minimize/restore), so the service learns about application switches without polling.
"""

import logging
import threading
import ctypes
from ctypes import wintypes, windll, byref
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from refreshcontrol import constants

logger = logging.getLogger("RefreshControl.WinEventHook")

# Ctypes definitions for the Windows API
WINEVENTPROC = ctypes.WINFUNCTYPE(
    None,
    wintypes.HANDLE,
    wintypes.DWORD,
    wintypes.HWND,
    wintypes.LONG,
    wintypes.LONG,
    wintypes.DWORD,
    wintypes.DWORD
)

# WinEvent Constants
EVENT_SYSTEM_FOREGROUND = 0x0003
EVENT_SYSTEM_MINIMIZESTART = 0x0016
EVENT_SYSTEM_MINIMIZEEND = 0x0017
WINEVENT_OUTOFCONTEXT = 0x0000
WINEVENT_SKIPOWNPROCESS = 0x0002
OBJID_WINDOW = 0
WM_QUIT = 0x0012


class WinEventHook(QObject):
    """
    Listens for one WinEvent on a dedicated message-loop thread.

    The hook callback runs on that thread and only emits an internal signal; Qt queues
    it to the thread this object lives in, where `event_triggered` is emitted.
    """
    event_triggered = pyqtSignal(int)

    _internal_event_received = pyqtSignal(int)

    def __init__(self, event_to_watch: int, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.event_to_watch = event_to_watch
        self._hook = None
        self._thread_id: Optional[int] = None
        self._thread: Optional[threading.Thread] = None
        self._is_running = False
        # Keep a reference; ctypes would otherwise free the trampoline.
        self.c_callback = WINEVENTPROC(self.callback)
        self._internal_event_received.connect(self.event_triggered)

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Starts the hook thread. Calling it twice is harmless."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._is_running = True
        self._thread = threading.Thread(
            target=self._run, name=f"WinEventHook-{self.event_to_watch:#06x}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        """Installs the hook and pumps messages until WM_QUIT arrives."""
        self._hook = windll.user32.SetWinEventHook(
            self.event_to_watch, self.event_to_watch, 0, self.c_callback,
            0, 0, WINEVENT_OUTOFCONTEXT | WINEVENT_SKIPOWNPROCESS
        )
        if not self._hook:
            logger.error("SetWinEventHook failed for event %#06x.", self.event_to_watch)
            self._is_running = False
            return
        self._thread_id = windll.kernel32.GetCurrentThreadId()
        logger.info("WinEventHook started for event %#06x in thread %d.", self.event_to_watch, self._thread_id)
        msg = wintypes.MSG()
        while self._is_running and windll.user32.GetMessageW(byref(msg), 0, 0, 0) > 0:
            windll.user32.TranslateMessage(byref(msg))
            windll.user32.DispatchMessageW(byref(msg))
        windll.user32.UnhookWinEvent(self._hook)
        self._hook = None
        logger.info("WinEventHook stopped for event %#06x.", self.event_to_watch)

    def callback(self, hWinEventHook, event, hwnd, idObject, idChild, dwEventThread, dwmsEventTime):
        """C-compatible callback on the hook thread; forwards window-level events only."""
        if idObject != OBJID_WINDOW or not hwnd:
            return
        self._internal_event_received.emit(int(hwnd))

    def stop(self) -> None:
        """Stops the listener thread and waits briefly for it to unhook."""
        if not self._is_running:
            return
        self._is_running = False
        if self._thread_id is not None:
            windll.user32.PostThreadMessageW(self._thread_id, WM_QUIT, 0, 0)
        if self._thread is not None:
            self._thread.join(constants.timeouts.HOOK_THREAD_JOIN_TIMEOUT_SEC)
        self._thread = None
        self._thread_id = None
