"""
Interfaces of the external collaborators the reconciliation loop depends on.

Concrete Windows implementations live in `refreshcontrol.utils.display_utils` and
`refreshcontrol.core.system_events`; tests substitute mocks.
"""

from typing import Any, Optional, Protocol


class ForegroundSource(Protocol):
    """Reports the application currently in the foreground."""

    def query_current_foreground(self) -> Optional[str]:
        ...


class SettingsBackend(Protocol):
    """Key/value settings with atomic single-key replace."""

    def get_float(self, key: str, default: float) -> float:
        ...

    def put_float(self, key: str, value: float) -> None:
        ...

    def get_string(self, key: str) -> Optional[str]:
        ...

    def put_string(self, key: str, value: str) -> None:
        ...


class RateSink(Protocol):
    """
    Hardware sink for a refresh-rate range.

    Sinks may also offer `supported_rates() -> List[float]`; the lowest entry is
    used as the power-save rate.
    """

    def set_range(self, min_rate: float, max_rate: float) -> None:
        ...


class NotificationSource(Protocol):
    """
    QObject exposing the notifications that drive the tracker.

    Signals: task_stack_changed(), activity_pinned(str), activity_unpinned(),
    screen_on(), screen_off(), power_mode_changed(bool).
    """
    task_stack_changed: Any
    activity_pinned: Any
    activity_unpinned: Any
    screen_on: Any
    screen_off: Any
    power_mode_changed: Any

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...
