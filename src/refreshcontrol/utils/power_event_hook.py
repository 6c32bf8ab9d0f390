"""
Windows power-setting notification listener.

Creates a hidden message-only window on its own thread and registers it for
display on/off and battery-saver notifications (WM_POWERBROADCAST with
PBT_POWERSETTINGCHANGE). Windows delivers the current value of each setting right
after registration, so listeners receive the initial state without a separate query.
"""

import ctypes
import logging
import threading
import uuid
from ctypes import wintypes
from typing import List, Optional

import win32api
import win32con
import win32gui
from PyQt6.QtCore import QObject, pyqtSignal

from refreshcontrol import constants

logger = logging.getLogger("RefreshControl.PowerEventHook")

WM_POWERBROADCAST = 0x0218
PBT_POWERSETTINGCHANGE = 0x8013
DEVICE_NOTIFY_WINDOW_HANDLE = 0x0000
HWND_MESSAGE = -3

GUID_CONSOLE_DISPLAY_STATE = uuid.UUID("6FE69556-704A-47A0-8F24-C28D936FDA47")
GUID_POWER_SAVING_STATUS = uuid.UUID("E00958C0-C213-4ACE-AC77-FECCED2EEEA5")

# GUID_CONSOLE_DISPLAY_STATE payload values
DISPLAY_STATE_OFF = 0
DISPLAY_STATE_ON = 1
DISPLAY_STATE_DIMMED = 2


class GUID(ctypes.Structure):
    _fields_ = [
        ("Data1", wintypes.DWORD),
        ("Data2", wintypes.WORD),
        ("Data3", wintypes.WORD),
        ("Data4", ctypes.c_ubyte * 8),
    ]

    @classmethod
    def from_uuid(cls, value: uuid.UUID) -> "GUID":
        return cls.from_buffer_copy(value.bytes_le)

    def to_uuid(self) -> uuid.UUID:
        return uuid.UUID(bytes_le=bytes(self))


class POWERBROADCAST_SETTING(ctypes.Structure):
    _fields_ = [
        ("PowerSetting", GUID),
        ("DataLength", wintypes.DWORD),
        ("Data", wintypes.DWORD),
    ]


class PowerEventHook(QObject):
    """
    Emits Qt signals for console display state and battery-saver changes.

    Signals are emitted from the listener thread; connected slots in other threads
    receive them through queued connections.

    Signals:
        display_state_changed (int): DISPLAY_STATE_OFF / _ON / _DIMMED.
        power_saving_changed (bool): True while battery saver is active.
    """
    display_state_changed = pyqtSignal(int)
    power_saving_changed = pyqtSignal(bool)

    CLASS_NAME = "RefreshControlPowerListener"

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._thread: Optional[threading.Thread] = None
        self._thread_id: Optional[int] = None
        self._hwnd: Optional[int] = None
        self._registrations: List[int] = []
        self._is_running = False

        self._register = ctypes.windll.user32.RegisterPowerSettingNotification
        self._register.argtypes = [wintypes.HANDLE, ctypes.POINTER(GUID), wintypes.DWORD]
        self._register.restype = wintypes.HANDLE
        self._unregister = ctypes.windll.user32.UnregisterPowerSettingNotification
        self._unregister.argtypes = [wintypes.HANDLE]
        self._unregister.restype = wintypes.BOOL

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._is_running = True
        self._thread = threading.Thread(target=self._run, name="PowerEventHook", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        hinstance = win32api.GetModuleHandle(None)
        wc = win32gui.WNDCLASS()
        wc.lpfnWndProc = self._wnd_proc
        wc.lpszClassName = self.CLASS_NAME
        wc.hInstance = hinstance
        try:
            class_atom = win32gui.RegisterClass(wc)
            self._hwnd = win32gui.CreateWindow(
                class_atom, self.CLASS_NAME, 0, 0, 0, 0, 0, HWND_MESSAGE, 0, hinstance, None
            )
        except win32gui.error as e:
            logger.error("Failed to create power notification window: %s", e)
            self._is_running = False
            return

        for setting in (GUID_CONSOLE_DISPLAY_STATE, GUID_POWER_SAVING_STATUS):
            guid = GUID.from_uuid(setting)
            handle = self._register(self._hwnd, ctypes.byref(guid), DEVICE_NOTIFY_WINDOW_HANDLE)
            if handle:
                self._registrations.append(handle)
            else:
                logger.warning("RegisterPowerSettingNotification failed for %s", setting)

        self._thread_id = win32api.GetCurrentThreadId()
        logger.info("PowerEventHook started in thread %d with %d registrations.", self._thread_id, len(self._registrations))
        win32gui.PumpMessages()

        for handle in self._registrations:
            self._unregister(handle)
        self._registrations = []
        win32gui.DestroyWindow(self._hwnd)
        win32gui.UnregisterClass(self.CLASS_NAME, hinstance)
        self._hwnd = None
        logger.info("PowerEventHook stopped.")

    def _wnd_proc(self, hwnd, msg, wparam, lparam):
        if msg == WM_POWERBROADCAST and wparam == PBT_POWERSETTINGCHANGE and lparam:
            self._dispatch(POWERBROADCAST_SETTING.from_address(lparam))
            return True
        return win32gui.DefWindowProc(hwnd, msg, wparam, lparam)

    def _dispatch(self, setting: POWERBROADCAST_SETTING) -> None:
        guid = setting.PowerSetting.to_uuid()
        value = int(setting.Data)
        if guid == GUID_CONSOLE_DISPLAY_STATE:
            logger.debug("Console display state: %d", value)
            self.display_state_changed.emit(value)
        elif guid == GUID_POWER_SAVING_STATUS:
            logger.debug("Power saving status: %d", value)
            self.power_saving_changed.emit(bool(value))

    def stop(self) -> None:
        if not self._is_running:
            return
        self._is_running = False
        if self._thread_id is not None:
            win32api.PostThreadMessage(self._thread_id, win32con.WM_QUIT, 0, 0)
        if self._thread is not None:
            self._thread.join(constants.timeouts.HOOK_THREAD_JOIN_TIMEOUT_SEC)
        self._thread = None
        self._thread_id = None
