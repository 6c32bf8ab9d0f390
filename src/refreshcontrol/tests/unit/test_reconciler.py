"""
Unit tests for the Reconciler.
"""

from unittest.mock import MagicMock

import pytest

from refreshcontrol import constants
from refreshcontrol.core.modes import Mode, RateRange
from refreshcontrol.core.policy_store import PolicyStore
from refreshcontrol.core.reconciler import Reconciler

KEYS = constants.rates.keys


class DeferredDebouncer:
    """Holds the latest scheduled work until `run_pending` is called."""

    def __init__(self):
        self.targets = []
        self._work = None

    def schedule(self, target_app_id, work):
        self.targets.append(target_app_id)
        self._work = work

    def run_pending(self):
        work, self._work = self._work, None
        if work is not None:
            work()


class ImmediateDebouncer:
    """Runs scheduled work synchronously and remembers the targets."""

    def __init__(self):
        self.targets = []

    def schedule(self, target_app_id, work):
        self.targets.append(target_app_id)
        work()


@pytest.fixture
def applier():
    """Applier mock that records the last applied range like ModeApplier does."""
    applier = MagicMock()
    applier.applied_state = None

    def apply(min_rate, max_rate):
        applier.applied_state = RateRange(min_rate, max_rate).clamped()
        return True

    applier.apply.side_effect = apply
    return applier


@pytest.fixture
def debouncer():
    return ImmediateDebouncer()


@pytest.fixture
def policy(settings):
    return PolicyStore(settings)


@pytest.fixture
def reconciler(policy, settings, applier, debouncer):
    return Reconciler(policy, settings, applier, debouncer)


def test_default_app_uses_system_default_rates(reconciler, settings, applier):
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 144.0
    result = reconciler.reconcile("notepad.exe")

    assert result.mode == Mode.DEFAULT
    assert not result.governed
    assert result.rate_range == RateRange(60.0, 144.0)
    applier.apply.assert_called_once_with(60.0, 144.0)


def test_missing_defaults_fall_back_to_default_rate(reconciler, applier):
    reconciler.reconcile("notepad.exe")
    applier.apply.assert_called_once_with(120.0, 120.0)


def test_extreme_app_is_clamped_against_default_min(reconciler, policy, settings, applier):
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 60.0
    policy.set("com.example.game", Mode.EXTREME)

    result = reconciler.reconcile("com.example.game")
    assert result.governed
    assert result.rate_range == RateRange(60.0, 120.0)


def test_standard_app_clamps_min(reconciler, policy, applier):
    policy.set("video.exe", Mode.STANDARD)
    result = reconciler.reconcile("video.exe")
    assert result.min_rate <= result.max_rate
    applier.apply.assert_called_once_with(60.0, 60.0)


def test_same_app_twice_is_a_noop(reconciler, applier, debouncer):
    assert reconciler.reconcile("a.exe") is not None
    assert reconciler.reconcile("a.exe") is None
    assert debouncer.targets == ["a.exe"]


def test_reset_allows_reconciling_same_app(reconciler, debouncer):
    reconciler.reconcile("a.exe")
    reconciler.reset()
    reconciler.reconcile("a.exe")
    assert debouncer.targets == ["a.exe", "a.exe"]


def test_defaults_not_recaptured_after_governed_app(reconciler, policy, settings, applier):
    """After a governed app the settings hold our own clamped values, which are not defaults."""
    settings.values[KEYS.MIN_REFRESH_RATE] = 90.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 120.0
    policy.set("video.exe", Mode.STANDARD)

    reconciler.reconcile("browser.exe")
    reconciler.reconcile("video.exe")
    # What the applier would have mirrored for video.exe.
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 60.0

    result = reconciler.reconcile("browser.exe")
    assert result.rate_range == RateRange(90.0, 120.0)


def test_defaults_recaptured_after_default_app(reconciler, settings):
    reconciler.reconcile("a.exe")
    settings.values[KEYS.MIN_REFRESH_RATE] = 48.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 144.0
    result = reconciler.reconcile("b.exe")
    assert result.rate_range == RateRange(48.0, 144.0)


def test_defaults_not_recaptured_after_override(reconciler, settings):
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 120.0
    reconciler.reconcile("a.exe")

    reconciler.note_override()
    settings.values[KEYS.MIN_REFRESH_RATE] = 48.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 48.0
    reconciler.reset()
    result = reconciler.reconcile("a.exe")
    assert result.rate_range == RateRange(60.0, 120.0)


def test_clamp_holds_across_transitions(reconciler, policy, settings):
    settings.values[KEYS.MIN_REFRESH_RATE] = 100.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 144.0
    policy.set("s.exe", Mode.STANDARD)
    policy.set("e.exe", Mode.EXTREME)
    for app_id in ("d.exe", "s.exe", "e.exe", "d.exe", "e.exe", "s.exe"):
        result = reconciler.reconcile(app_id)
        assert result.min_rate <= result.max_rate


def test_last_result_is_exposed(reconciler):
    assert reconciler.last_result is None
    result = reconciler.reconcile("a.exe")
    assert reconciler.last_result is result


def test_pending_default_apply_does_not_recapture_governed_values(policy, settings, applier):
    """A default app reconciled while the previous default apply is still pending keeps the true defaults."""
    debouncer = DeferredDebouncer()
    reconciler = Reconciler(policy, settings, applier, debouncer)
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 90.0
    policy.set("video.exe", Mode.STANDARD)

    reconciler.reconcile("video.exe")
    debouncer.run_pending()
    # What the applier mirrors for video.exe.
    settings.values[KEYS.MIN_REFRESH_RATE] = 60.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 60.0

    reconciler.reconcile("browser.exe")
    result = reconciler.reconcile("editor.exe")
    debouncer.run_pending()

    assert result.rate_range == RateRange(60.0, 90.0)
    assert applier.applied_state == RateRange(60.0, 90.0)


def test_defaults_recaptured_once_default_range_lands(policy, settings, applier):
    debouncer = DeferredDebouncer()
    reconciler = Reconciler(policy, settings, applier, debouncer)
    policy.set("video.exe", Mode.STANDARD)

    reconciler.reconcile("video.exe")
    debouncer.run_pending()
    reconciler.reconcile("browser.exe")
    debouncer.run_pending()

    settings.values[KEYS.MIN_REFRESH_RATE] = 48.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 144.0
    result = reconciler.reconcile("editor.exe")
    assert result.rate_range == RateRange(48.0, 144.0)


def test_failed_governed_apply_keeps_recapturing(policy, settings, applier):
    """A governed range that never reached the display leaves the settings holding defaults."""
    debouncer = DeferredDebouncer()
    reconciler = Reconciler(policy, settings, applier, debouncer)
    policy.set("video.exe", Mode.STANDARD)
    applier.apply.side_effect = None
    applier.apply.return_value = False

    reconciler.reconcile("video.exe")
    debouncer.run_pending()

    settings.values[KEYS.MIN_REFRESH_RATE] = 48.0
    settings.values[KEYS.PEAK_REFRESH_RATE] = 144.0
    result = reconciler.reconcile("browser.exe")
    assert result.rate_range == RateRange(48.0, 144.0)
