"""
Constants for timer intervals used by the reconciliation loop.
"""

from typing import Final

class TimerConstants:
    """Defines the debounce window and notification rate limits."""
    # Delay between the last foreground change and the actual rate apply.
    DEBOUNCE_DELAY_MS: Final[int] = 100
    # Stack-change notifications closer together than this are dropped.
    MIN_CHECK_INTERVAL_MS: Final[int] = 50
    # How long window animations stay suppressed around a rate change.
    TRANSITION_RESTORE_DELAY_MS: Final[int] = 50
    # Upper bound accepted from the config file for any of the above.
    MAXIMUM_CONFIGURABLE_MS: Final[int] = 5000

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate the timer constants to ensure they are positive."""
        for attr_name in dir(self):
            if attr_name.endswith("_MS"):
                value = getattr(self, attr_name)
                if not isinstance(value, int) or value <= 0:
                    raise ValueError(f"{attr_name} must be a positive integer.")
        if self.DEBOUNCE_DELAY_MS > self.MAXIMUM_CONFIGURABLE_MS:
            raise ValueError("DEBOUNCE_DELAY_MS must not exceed MAXIMUM_CONFIGURABLE_MS")

# Singleton instance for easy access
timers = TimerConstants()
