"""
Unit tests for the JSON SettingsStore backend.
"""
import json
import threading
from unittest.mock import patch

import pytest

from refreshcontrol import constants
from refreshcontrol.core.modes import Mode
from refreshcontrol.core.policy_store import PolicyStore
from refreshcontrol.utils.config import ConfigError
from refreshcontrol.utils.settings_store import SettingsStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "settings.json"


def test_missing_file_starts_empty(store_path):
    store = SettingsStore(store_path)
    assert store.get_float("peak_refresh_rate", 120.0) == 120.0
    assert store.get_string("refresh_control") is None
    assert not store_path.exists()


def test_values_persist_across_instances(store_path):
    store = SettingsStore(store_path)
    store.put_float("peak_refresh_rate", 90)
    store.put_string("refresh_control", ":a.exe,")

    reopened = SettingsStore(store_path)
    assert reopened.get_float("peak_refresh_rate", 120.0) == 90.0
    assert reopened.get_string("refresh_control") == ":a.exe,"


def test_type_mismatches(store_path):
    store_path.write_text(json.dumps({"a": "x", "b": 1.5, "c": True}), encoding="utf-8")
    store = SettingsStore(store_path)
    assert store.get_float("a", 7.0) == 7.0
    assert store.get_float("c", 7.0) == 7.0
    assert store.get_string("b") is None
    with pytest.raises(TypeError):
        store.put_string("a", 3)


def test_corrupt_file_is_backed_up(store_path):
    store_path.write_text("{{{", encoding="utf-8")
    store = SettingsStore(store_path)
    assert store.get_string("refresh_control") is None
    assert store_path.with_name("settings.json.corrupt").exists()


def test_unchanged_put_skips_write(store_path):
    store = SettingsStore(store_path)
    store.put_float("min_refresh_rate", 60.0)
    with patch("tempfile.NamedTemporaryFile") as mock_tmp:
        store.put_float("min_refresh_rate", 60.0)
        mock_tmp.assert_not_called()


def test_failed_write_keeps_previous_value(store_path):
    store = SettingsStore(store_path)
    store.put_string("refresh_control", ":")
    with patch("shutil.move", side_effect=OSError("locked")):
        with pytest.raises(ConfigError):
            store.put_string("refresh_control", "a.exe,:")
    assert store.get_string("refresh_control") == ":"


def test_concurrent_puts_never_tear_the_file(store_path):
    store = SettingsStore(store_path)

    def writer(prefix):
        for i in range(25):
            store.put_string(f"{prefix}", f"{prefix}{i},:")

    threads = [threading.Thread(target=writer, args=(name,)) for name in ("a", "b", "c")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    on_disk = json.loads(store_path.read_text(encoding="utf-8"))
    assert on_disk == {"a": "a24,:", "b": "b24,:", "c": "c24,:"}


def test_put_keeps_value_written_by_another_instance(store_path):
    service_store = SettingsStore(store_path)
    cli_store = SettingsStore(store_path)
    service_store.get_string(constants.rates.keys.POLICY)

    PolicyStore(cli_store).set("game.exe", Mode.EXTREME)
    service_store.put_float(constants.rates.keys.MIN_REFRESH_RATE, 60)

    assert PolicyStore(service_store).get("game.exe") is Mode.EXTREME
    on_disk = SettingsStore(store_path)
    assert PolicyStore(on_disk).get("game.exe") is Mode.EXTREME
    assert on_disk.get_float(constants.rates.keys.MIN_REFRESH_RATE, 0.0) == 60.0


def test_reads_pick_up_external_edits(store_path):
    service_store = SettingsStore(store_path)
    service_store.put_float("peak_refresh_rate", 90)

    store_path.write_text(json.dumps({"peak_refresh_rate": 144.0, "extra": "x"}), encoding="utf-8")

    assert service_store.get_float("peak_refresh_rate", 0.0) == 144.0
    assert service_store.get_string("extra") == "x"


def test_file_removed_by_another_process_reads_as_empty(store_path):
    store = SettingsStore(store_path)
    store.put_string("refresh_control", ":a.exe,")
    store_path.unlink()

    assert store.get_string("refresh_control") is None
    store.put_string("refresh_control", ":a.exe,")
    assert json.loads(store_path.read_text(encoding="utf-8")) == {"refresh_control": ":a.exe,"}
