"""
Constants for application configuration defaults and constraints.
"""
from typing import Final, Dict, Any

from .rates import rates
from .timers import timers

class ConfigMessages:
    """Log message templates for configuration validation."""
    INVALID_NUMERIC: Final[str] = "Invalid {key} '{value}', resetting to default '{default}'"
    INVALID_BOOLEAN: Final[str] = "Invalid {key} '{value}', resetting to boolean default '{default}'"
    INVALID_OPTIONAL: Final[str] = "Invalid {key} '{value}', resetting to '{default}'"

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        for attr_name in dir(self):
            if not attr_name.startswith('_') and attr_name.isupper():
                value = getattr(self, attr_name)
                if not isinstance(value, str) or not value:
                    raise ValueError(f"ConfigMessages.{attr_name} must be a non-empty string.")


class ConfigConstants:
    """Defines default values and constraints for all application settings."""
    DEFAULT_STANDARD_RATE: Final[float] = rates.modes.STANDARD_RATE
    DEFAULT_EXTREME_RATE: Final[float] = rates.modes.EXTREME_RATE
    DEFAULT_DEFAULT_RATE: Final[float] = rates.modes.DEFAULT_RATE
    DEFAULT_DEBOUNCE_MS: Final[int] = timers.DEBOUNCE_DELAY_MS
    DEFAULT_MIN_CHECK_INTERVAL_MS: Final[int] = timers.MIN_CHECK_INTERVAL_MS
    DEFAULT_TRANSITION_RESTORE_DELAY_MS: Final[int] = timers.TRANSITION_RESTORE_DELAY_MS
    DEFAULT_SMOOTH_TRANSITIONS: Final[bool] = True
    DEFAULT_RECHECK_ON_POLICY_EDIT: Final[bool] = True

    CONFIG_FILENAME: Final[str] = "RefreshControl_Config.json"
    SETTINGS_FILENAME: Final[str] = "RefreshControl_Settings.json"

    DEFAULT_CONFIG: Final[Dict[str, Any]] = {
        "standard_rate": DEFAULT_STANDARD_RATE,
        "extreme_rate": DEFAULT_EXTREME_RATE,
        "default_rate": DEFAULT_DEFAULT_RATE,
        "power_save_rate": None,
        "debounce_ms": DEFAULT_DEBOUNCE_MS,
        "min_check_interval_ms": DEFAULT_MIN_CHECK_INTERVAL_MS,
        "transition_restore_delay_ms": DEFAULT_TRANSITION_RESTORE_DELAY_MS,
        "smooth_transitions": DEFAULT_SMOOTH_TRANSITIONS,
        "recheck_on_policy_edit": DEFAULT_RECHECK_ON_POLICY_EDIT,
    }

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.CONFIG_FILENAME or not self.SETTINGS_FILENAME:
            raise ValueError("CONFIG_FILENAME and SETTINGS_FILENAME must not be empty")
        if self.CONFIG_FILENAME == self.SETTINGS_FILENAME:
            raise ValueError("Config and settings must live in separate files")

        expected_keys = {
            "standard_rate", "extreme_rate", "default_rate", "power_save_rate",
            "debounce_ms", "min_check_interval_ms", "transition_restore_delay_ms",
            "smooth_transitions", "recheck_on_policy_edit",
        }
        actual_keys = set(self.DEFAULT_CONFIG.keys())
        if actual_keys != expected_keys:
            missing = expected_keys - actual_keys
            extra = actual_keys - expected_keys
            raise ValueError(f"DEFAULT_CONFIG key mismatch. Missing: {missing or 'None'}. Extra: {extra or 'None'}.")


class ConfigurationConstants:
    """Container for configuration-related constant groups."""
    def __init__(self) -> None:
        self.defaults = ConfigConstants()
        self.messages = ConfigMessages()

# Singleton instance for easy access
config = ConfigurationConstants()
