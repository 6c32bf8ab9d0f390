"""
Timeouts and Intervals Constants Module.

Values used when tearing down threads and hooks, kept here to avoid magic numbers.
"""

from typing import Final


class TimeoutConstants:
    """Defines all timeout values used across the application."""
    # Thread / App Lifecycle (milliseconds)
    WORKER_THREAD_STOP_WAIT_MS: Final[int] = 1000
    HOOK_THREAD_JOIN_TIMEOUT_SEC: Final[float] = 1.0

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate that all timeouts are positive."""
        for attr_name in dir(self):
            if attr_name.endswith("_MS") or attr_name.endswith("_SEC"):
                value = getattr(self, attr_name)
                if not isinstance(value, (int, float)) or value <= 0:
                    raise ValueError(f"{attr_name} must be a positive number.")


# Singleton instance for easy access
timeouts = TimeoutConstants()
