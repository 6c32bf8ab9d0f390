"""
Maps a foreground application to the refresh range it should run at.

Runs on the worker thread. The computed range is handed to the Debouncer, which
performs the apply on the main thread.
"""

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Optional

from refreshcontrol import constants
from refreshcontrol.core.backends import SettingsBackend
from refreshcontrol.core.debouncer import Debouncer
from refreshcontrol.core.mode_applier import ModeApplier
from refreshcontrol.core.modes import Mode, ModeRates, RateRange
from refreshcontrol.core.policy_store import PolicyStore
from refreshcontrol.utils.helpers import format_rate_range

logger = logging.getLogger("RefreshControl.Reconciler")


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation. `governed` is True for non-default modes."""
    app_id: str
    mode: Mode
    min_rate: float
    max_rate: float
    governed: bool

    @property
    def rate_range(self) -> RateRange:
        return RateRange(self.min_rate, self.max_rate)


class Reconciler:
    """
    Looks up the policy for an app and schedules the matching apply.

    The system default range is captured from the settings backend. Once a governed
    range or a forced override rate has actually been written, the backend holds
    values this service wrote itself, so the captured defaults are kept rather than
    re-read until a default range lands again. That state is updated by the
    debounced work on the apply thread, so a reconcile that is still pending never
    counts as written.
    """

    def __init__(self, policy: PolicyStore, settings: SettingsBackend, applier: ModeApplier,
                 debouncer: Debouncer, mode_rates: Optional[ModeRates] = None,
                 default_rate: Optional[float] = None) -> None:
        self.policy = policy
        self.settings = settings
        self.applier = applier
        self.debouncer = debouncer
        self.mode_rates = mode_rates or ModeRates()
        self.default_rate = float(default_rate) if default_rate is not None else constants.rates.modes.DEFAULT_RATE
        self.logger = logger

        self._last_app_id: Optional[str] = None
        self._last_result: Optional[ReconcileResult] = None
        self._settings_hold_ours = threading.Event()
        self._default_range = RateRange(self.default_rate, self.default_rate)

    @property
    def last_result(self) -> Optional[ReconcileResult]:
        return self._last_result

    def reset(self) -> None:
        """Forgets the last reconciled app so the next reconcile always runs."""
        self._last_app_id = None

    def note_override(self) -> None:
        """Marks the settings as holding a forced rate rather than the system defaults."""
        self._settings_hold_ours.set()

    def refresh_default_rates(self) -> RateRange:
        """Re-reads the system default range from the settings backend."""
        keys = constants.rates.keys
        min_rate = self.settings.get_float(keys.MIN_REFRESH_RATE, self.default_rate)
        max_rate = self.settings.get_float(keys.PEAK_REFRESH_RATE, self.default_rate)
        self._default_range = RateRange(min_rate, max_rate).clamped()
        self.logger.debug("Captured default rates %s", format_rate_range(self._default_range.as_tuple()))
        return self._default_range

    def reconcile(self, app_id: str) -> Optional[ReconcileResult]:
        """
        Computes and schedules the range for `app_id`.

        Returns:
            The new ReconcileResult, or None if `app_id` was the last app reconciled.
        """
        if app_id == self._last_app_id:
            self.logger.debug("%s already reconciled, skipping.", app_id)
            return None

        if not self._settings_hold_ours.is_set():
            self.refresh_default_rates()

        mode = self.policy.get(app_id)
        target = self.mode_rates.resolve(mode, self._default_range)
        result = ReconcileResult(
            app_id=app_id,
            mode=mode,
            min_rate=target.min_rate,
            max_rate=target.max_rate,
            governed=mode is not Mode.DEFAULT,
        )
        self._last_app_id = app_id
        self._last_result = result

        self.logger.info("Foreground %s is %s, targeting %s", app_id, mode.name,
                         format_rate_range(target.as_tuple()))
        self.debouncer.schedule(app_id, partial(self._apply_result, result))
        return result

    def _apply_result(self, result: ReconcileResult) -> None:
        """Debounced work, run on the apply thread."""
        target = result.rate_range.clamped()
        self.applier.apply(target.min_rate, target.max_rate)
        if self.applier.applied_state != target:
            # Nothing was written; the settings still hold the previous range.
            return
        if result.governed:
            self._settings_hold_ours.set()
        else:
            self._settings_hold_ours.clear()
