"""
Constants for application metadata and lifecycle management.
"""

from typing import Final

class AppConstants:
    """Defines application metadata and the single-instance mutex name."""
    APP_NAME: Final[str] = "RefreshControl"
    VERSION: Final[str] = "1.0.0"
    MUTEX_NAME: Final[str] = "Global\\RefreshControl_SingleInstanceMutex"
    WORKER_THREAD_NAME: Final[str] = "RefreshServiceThread"
    ENV_VAR_PROD_MODE: Final[str] = "REFRESHCONTROL_PROD"

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate the constants to ensure they meet constraints."""
        if not self.APP_NAME:
            raise ValueError("APP_NAME must not be empty")
        if not self.VERSION:
            raise ValueError("VERSION must not be empty")
        if not self.MUTEX_NAME:
            raise ValueError("MUTEX_NAME must not be empty")

# Singleton instance for easy access
app = AppConstants()
