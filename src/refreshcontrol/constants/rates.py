"""
Constants for refresh rates and the settings keys they are stored under.
"""
from typing import Final


class RateConstants:
    """Refresh rates (Hz) tied to each operating mode."""
    # Fallback for the system default when the settings backend has no value.
    DEFAULT_RATE: Final[float] = 120.0
    STANDARD_RATE: Final[float] = 60.0
    EXTREME_RATE: Final[float] = 120.0
    # Forced while power saving is active and the sink cannot report its modes.
    POWER_SAVE_RATE: Final[float] = 60.0

    MINIMUM_RATE: Final[float] = 1.0
    MAXIMUM_RATE: Final[float] = 1000.0

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        for name in ("DEFAULT_RATE", "STANDARD_RATE", "EXTREME_RATE", "POWER_SAVE_RATE"):
            value = getattr(self, name)
            if not (self.MINIMUM_RATE <= value <= self.MAXIMUM_RATE):
                raise ValueError(f"{name} must be between {self.MINIMUM_RATE} and {self.MAXIMUM_RATE}")


class SettingsKeyConstants:
    """Keys used in the settings backend."""
    # Serialized per-application policy blob.
    POLICY: Final[str] = "refresh_control"

    # Rate range mirrored after every apply; read back as the system defaults.
    MIN_REFRESH_RATE: Final[str] = "min_refresh_rate"
    PEAK_REFRESH_RATE: Final[str] = "peak_refresh_rate"
    USER_REFRESH_RATE: Final[str] = "user_refresh_rate"

    # Cosmetic transition parameters.
    WINDOW_ANIMATION_SCALE: Final[str] = "window_animation_scale"
    ANIMATOR_DURATION_SCALE: Final[str] = "animator_duration_scale"
    SMOOTH_DISPLAY_SWITCH: Final[str] = "smooth_display_switch"

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        values = [getattr(self, name) for name in dir(self) if name.isupper()]
        if any(not isinstance(v, str) or not v for v in values):
            raise ValueError("Settings keys must be non-empty strings")
        if len(set(values)) != len(values):
            raise ValueError("Settings keys must be unique")


class PolicyFormatConstants:
    """Delimiters of the persisted policy blob."""
    BUCKET_SEPARATOR: Final[str] = ":"
    ID_TERMINATOR: Final[str] = ","
    # Bucket labels written by older releases, stripped on read.
    LEGACY_BUCKET_LABELS: Final[tuple] = ("refresh.standard=", "refresh.extreme=")

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.BUCKET_SEPARATOR == self.ID_TERMINATOR:
            raise ValueError("BUCKET_SEPARATOR and ID_TERMINATOR must differ")


class RefreshRateConstants:
    """Container for rate-related constant groups."""
    def __init__(self) -> None:
        self.modes = RateConstants()
        self.keys = SettingsKeyConstants()
        self.policy = PolicyFormatConstants()

# Singleton instance for easy access
rates = RefreshRateConstants()
