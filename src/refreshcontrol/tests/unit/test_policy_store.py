"""
Unit tests for the PolicyStore and its bucket codec.
"""

import pytest

from refreshcontrol import constants
from refreshcontrol.core.modes import Mode
from refreshcontrol.core.policy_store import (
    MalformedPolicyError,
    PolicyStore,
    decode_policy,
    encode_policy,
)

POLICY_KEY = constants.rates.keys.POLICY


@pytest.fixture
def store(settings):
    return PolicyStore(settings)


def test_first_read_initializes_empty_buckets(store, settings):
    """Reading an absent policy persists two empty buckets."""
    assert store.get("com.example.app") == Mode.DEFAULT
    assert settings.values[POLICY_KEY] == ":"


def test_round_trip_standard_then_default(store, settings):
    store.set("com.example.app", Mode.STANDARD)
    assert store.get("com.example.app") == Mode.STANDARD
    assert settings.values[POLICY_KEY] == "com.example.app,:"

    store.set("com.example.app", Mode.DEFAULT)
    assert store.get("com.example.app") == Mode.DEFAULT
    assert "com.example.app," not in settings.values[POLICY_KEY]


def test_bucket_exclusivity_across_writes(store, settings):
    """An id is never listed in more than one bucket."""
    sequence = [Mode.STANDARD, Mode.EXTREME, Mode.EXTREME, Mode.STANDARD, Mode.DEFAULT, Mode.EXTREME]
    for mode in sequence:
        store.set("game.exe", mode)
        blob = settings.values[POLICY_KEY]
        listed_in = [bucket for bucket in blob.split(":") if "game.exe," in bucket]
        assert len(listed_in) == (0 if mode is Mode.DEFAULT else 1)
        assert store.get("game.exe") == mode


def test_set_keeps_other_entries(store):
    store.set("a.exe", Mode.STANDARD)
    store.set("b.exe", Mode.EXTREME)
    store.set("c.exe", Mode.STANDARD)
    store.set("a.exe", Mode.EXTREME)
    assert store.entries() == {"a.exe": Mode.EXTREME, "b.exe": Mode.EXTREME, "c.exe": Mode.STANDARD}


def test_each_mutation_is_a_single_put(store, settings):
    store.load()
    settings.puts.clear()
    store.set("a.exe", Mode.EXTREME)
    assert settings.puts == [(POLICY_KEY, ":a.exe,")]


def test_malformed_blob_is_reset_and_repersisted(settings_factory):
    settings = settings_factory({POLICY_KEY: "a.exe,:b.exe,:c.exe,"})
    store = PolicyStore(settings)
    assert store.get("a.exe") == Mode.DEFAULT
    assert settings.values[POLICY_KEY] == ":"


def test_unterminated_bucket_is_malformed(settings_factory):
    settings = settings_factory({POLICY_KEY: "a.exe:"})
    store = PolicyStore(settings)
    assert store.entries() == {}
    assert settings.values[POLICY_KEY] == ":"


def test_legacy_labels_are_accepted(settings_factory):
    settings = settings_factory({POLICY_KEY: "refresh.standard=a.exe,:refresh.extreme=b.exe,"})
    store = PolicyStore(settings)
    assert store.get("a.exe") == Mode.STANDARD
    assert store.get("b.exe") == Mode.EXTREME

    store.set("c.exe", Mode.STANDARD)
    assert settings.values[POLICY_KEY] == "a.exe,c.exe,:b.exe,"


@pytest.mark.parametrize("bad_id", ["", "a:b", "a,b"])
def test_invalid_ids_are_rejected(store, bad_id):
    with pytest.raises(ValueError):
        store.set(bad_id, Mode.STANDARD)


def test_set_accepts_mode_names(store):
    store.set("a.exe", "extreme")
    assert store.get("a.exe") == Mode.EXTREME


def test_unknown_mode_is_rejected(store):
    with pytest.raises(ValueError):
        store.set("a.exe", 7)


def test_codec_boundaries():
    assert decode_policy(":") == {}
    assert encode_policy({}) == ":"
    assert encode_policy({"x": Mode.EXTREME, "y": Mode.STANDARD, "z": Mode.DEFAULT}) == "y,:x,"
    with pytest.raises(MalformedPolicyError):
        decode_policy("")
    with pytest.raises(MalformedPolicyError):
        decode_policy(",,:")
