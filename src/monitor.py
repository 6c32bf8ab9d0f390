"""
Application entry point and lifecycle management for RefreshControl.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication

from refreshcontrol import constants
from refreshcontrol.core.modes import Mode
from refreshcontrol.core.policy_store import PolicyStore
from refreshcontrol.utils.config import ConfigManager
from refreshcontrol.utils.settings_store import SettingsStore


class SingleInstanceChecker:
    """
    Ensures that only one instance of the service can run at a time using a system-wide mutex.

    This class is designed to be used as a context manager.

    Raises:
        RuntimeError: If another instance of the service is already running or if the
                      mutex cannot be created.
    """
    def __init__(self):
        import win32api
        import win32event
        import winerror

        self.mutex = None
        self.logger = logging.getLogger("RefreshControl.SingleInstanceChecker")
        try:
            self.mutex = win32event.CreateMutex(None, False, constants.app.MUTEX_NAME)
            if win32api.GetLastError() == winerror.ERROR_ALREADY_EXISTS:
                self.logger.error("Another instance of RefreshControl is already running.")
                raise RuntimeError("Application is already running.")
        except win32api.error as e:
            self.logger.error("Failed to create mutex: %s", e)
            raise RuntimeError(f"Failed to create mutex: {e}") from e

    def __enter__(self):
        """Enter the context manager, acquiring the mutex."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit the context manager, releasing the mutex handle."""
        if self.mutex:
            import win32api
            try:
                win32api.CloseHandle(self.mutex)
            except win32api.error as e:
                self.logger.error("Failed to release mutex: %s", e)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refreshcontrol",
        description="Per-application display refresh-rate controller.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {constants.app.VERSION}")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--get", metavar="APP", help="print the mode stored for APP")
    group.add_argument("--set", nargs=2, metavar=("APP", "MODE"),
                       help="store MODE (default, standard, extreme) for APP")
    group.add_argument("--list", action="store_true", help="print every application with a non-default mode")
    return parser


def run_policy_command(args: argparse.Namespace, policy: PolicyStore) -> int:
    """Handles --get/--set/--list against the stored policy. Returns an exit code."""
    if args.get is not None:
        print(policy.get(args.get).name.lower())
        return 0
    if args.set is not None:
        app_id, mode_name = args.set
        try:
            policy.set(app_id, Mode.parse(mode_name))
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        return 0
    for app_id, mode in sorted(policy.entries().items()):
        print(f"{app_id}\t{mode.name.lower()}")
    return 0


def run_service(config: dict, settings: SettingsStore) -> int:
    """Runs the reconciliation loop until the process is interrupted."""
    from refreshcontrol.core.refresh_service import RefreshService
    from refreshcontrol.core.system_events import SystemEventHandler
    from refreshcontrol.utils.display_utils import DisplayRateSink, WindowsForegroundSource

    app = QCoreApplication(sys.argv)
    app.setApplicationName(constants.app.APP_NAME)
    app.setApplicationVersion(constants.app.VERSION)

    with SingleInstanceChecker():
        service = RefreshService(
            settings=settings,
            sink=DisplayRateSink(),
            source=WindowsForegroundSource(),
            notifications=SystemEventHandler(),
            config=config,
        )
        app.aboutToQuit.connect(service.cleanup)

        signal.signal(signal.SIGINT, lambda s, f: QCoreApplication.instance().quit())
        signal.signal(signal.SIGTERM, lambda s, f: QCoreApplication.instance().quit())

        service.start_service()
        return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for RefreshControl.

    1. Sets up logging.
    2. Loads configuration and opens the settings backend.
    3. Runs a one-shot policy command, or the service event loop when none is given.

    Returns:
        An integer exit code.
    """
    ConfigManager.setup_logging()
    logger = logging.getLogger("RefreshControl.Main")
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager().load()
        settings = SettingsStore(ConfigManager.get_settings_path())

        if args.get is not None or args.set is not None or args.list:
            return run_policy_command(args, PolicyStore(settings))
        return run_service(config, settings)

    except Exception as e:
        logger.critical("A critical error occurred during startup: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
