"""
Utilities submodule for RefreshControl.

Provides configuration management, the settings backend and helper functions.
Windows-only adapters (display_utils, win_event_hook, power_event_hook) are imported
from their modules directly.
"""

from .config import ConfigManager, ConfigError
from .helpers import get_app_data_path, format_rate, format_rate_range
from .settings_store import SettingsStore

__all__ = [
    "ConfigManager",
    "ConfigError",
    "SettingsStore",
    "get_app_data_path",
    "format_rate",
    "format_rate_range",
]
