"""
Unit tests for PowerEventHook notification parsing.
"""

from unittest.mock import MagicMock

import pytest

pytest.importorskip("win32gui")

from refreshcontrol.utils.power_event_hook import (
    GUID,
    GUID_CONSOLE_DISPLAY_STATE,
    GUID_POWER_SAVING_STATUS,
    POWERBROADCAST_SETTING,
    PowerEventHook,
)


def setting(guid, value):
    return POWERBROADCAST_SETTING(GUID.from_uuid(guid), 4, value)


@pytest.fixture
def hook(q_app):
    return PowerEventHook()


def test_guid_round_trip():
    assert GUID.from_uuid(GUID_POWER_SAVING_STATUS).to_uuid() == GUID_POWER_SAVING_STATUS


def test_display_state_is_emitted(hook):
    slot = MagicMock()
    hook.display_state_changed.connect(slot)
    hook._dispatch(setting(GUID_CONSOLE_DISPLAY_STATE, 0))
    slot.assert_called_once_with(0)


def test_power_saving_is_emitted_as_bool(hook):
    slot = MagicMock()
    hook.power_saving_changed.connect(slot)
    hook._dispatch(setting(GUID_POWER_SAVING_STATUS, 1))
    slot.assert_called_once_with(True)


def test_stop_without_start_is_harmless(hook):
    hook.stop()
