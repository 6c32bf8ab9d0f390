"""
Windows display and foreground-window utilities.

Implements the two OS-facing collaborators of the reconciliation loop:
- WindowsForegroundSource: resolves the foreground window to its process name.
- DisplayRateSink: applies a refresh-rate range to a display via ChangeDisplaySettingsEx.
"""

import logging
from typing import List, Optional

import psutil
import pywintypes
import win32api
import win32con
import win32gui
import win32process

logger = logging.getLogger("RefreshControl.DisplayUtils")

# EnumDisplaySettings mode indices are dense; stop well before a runaway driver list.
MAX_DISPLAY_MODES = 4096


class DisplayChangeError(RuntimeError):
    """Raised when Windows rejects a display frequency change."""


class WindowsForegroundSource:
    """Reports the executable name of the process owning the foreground window."""

    def query_current_foreground(self) -> Optional[str]:
        hwnd = win32gui.GetForegroundWindow()
        if not hwnd:
            return None
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
        if pid <= 0:
            return None
        try:
            name = psutil.Process(pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
            logger.debug("Cannot resolve process for HWND %s (pid %s): %s", hwnd, pid, e)
            return None
        return name.lower() or None


class DisplayRateSink:
    """
    Applies refresh rates to a display.

    Windows exposes a single fixed frequency per display mode, so a (min, max) range
    is realised as the highest supported frequency inside the range, falling back to
    the supported frequency closest to `max_rate`.
    """

    def __init__(self, device: Optional[str] = None) -> None:
        self.device = device
        self._supported: Optional[List[float]] = None

    def current_rate(self) -> float:
        devmode = win32api.EnumDisplaySettings(self.device, win32con.ENUM_CURRENT_SETTINGS)
        return float(devmode.DisplayFrequency)

    def supported_rates(self) -> List[float]:
        """Frequencies available at the current resolution and colour depth, ascending."""
        if self._supported is not None:
            return list(self._supported)

        current = win32api.EnumDisplaySettings(self.device, win32con.ENUM_CURRENT_SETTINGS)
        rates = set()
        for index in range(MAX_DISPLAY_MODES):
            try:
                mode = win32api.EnumDisplaySettings(self.device, index)
            except pywintypes.error:
                break
            if (mode.PelsWidth, mode.PelsHeight, mode.BitsPerPel) == (
                current.PelsWidth, current.PelsHeight, current.BitsPerPel
            ) and mode.DisplayFrequency > 1:
                rates.add(float(mode.DisplayFrequency))
        if not rates:
            rates.add(float(current.DisplayFrequency))
        self._supported = sorted(rates)
        logger.debug("Supported refresh rates: %s", self._supported)
        return list(self._supported)

    def resolve_frequency(self, min_rate: float, max_rate: float) -> int:
        supported = self.supported_rates()
        in_range = [r for r in supported if min_rate <= r <= max_rate]
        if in_range:
            return int(max(in_range))
        return int(min(supported, key=lambda r: abs(r - max_rate)))

    def set_range(self, min_rate: float, max_rate: float) -> None:
        frequency = self.resolve_frequency(min_rate, max_rate)
        devmode = win32api.EnumDisplaySettings(self.device, win32con.ENUM_CURRENT_SETTINGS)
        if devmode.DisplayFrequency == frequency:
            logger.debug("Display already at %d Hz", frequency)
            return
        devmode.DisplayFrequency = frequency
        devmode.Fields = win32con.DM_DISPLAYFREQUENCY
        result = win32api.ChangeDisplaySettingsEx(self.device, devmode, 0)
        if result != win32con.DISP_CHANGE_SUCCESSFUL:
            raise DisplayChangeError(f"ChangeDisplaySettingsEx returned {result} for {frequency} Hz")
        logger.info("Display frequency set to %d Hz", frequency)
