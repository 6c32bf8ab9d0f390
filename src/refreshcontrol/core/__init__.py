"""
Core components of the RefreshControl reconciliation loop.

The Windows notification source lives in `refreshcontrol.core.system_events` and is
imported from there directly.
"""

from .debouncer import Debouncer
from .foreground_tracker import ForegroundTracker
from .mode_applier import ModeApplier
from .modes import Mode, ModeRates, RateRange
from .policy_store import PolicyStore
from .reconciler import ReconcileResult, Reconciler
from .refresh_service import RefreshService

__all__ = [
    "Debouncer",
    "ForegroundTracker",
    "Mode",
    "ModeApplier",
    "ModeRates",
    "PolicyStore",
    "RateRange",
    "ReconcileResult",
    "Reconciler",
    "RefreshService",
]
