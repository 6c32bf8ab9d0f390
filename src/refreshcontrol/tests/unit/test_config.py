"""
Unit tests for the ConfigManager class in the RefreshControl application.
"""
import json
from pathlib import Path
from unittest.mock import patch, mock_open

import pytest

from refreshcontrol import constants
from refreshcontrol.utils.config import ConfigError, ConfigManager

DEFAULTS = constants.config.defaults.DEFAULT_CONFIG


@pytest.fixture
def config_manager(tmp_path):
    config_path = tmp_path / "refreshcontrol_test.json"
    return ConfigManager(config_path)


def test_load_creates_default_config_if_missing(config_manager):
    with patch.object(config_manager, "save") as mock_save:
        config = config_manager.load()
        mock_save.assert_called_once()
        assert mock_save.call_args[0][0] == DEFAULTS
        assert config == DEFAULTS


def test_load_valid_config_merges_with_defaults(config_manager):
    mock_content = json.dumps({"debounce_ms": 250, "extreme_rate": 144})
    with patch.object(Path, "exists", return_value=True):
        with patch.object(Path, "open", mock_open(read_data=mock_content)):
            config = config_manager.load()
    assert config["debounce_ms"] == 250
    assert config["extreme_rate"] == 144.0
    assert config["standard_rate"] == DEFAULTS["standard_rate"]


def test_validate_config_corrects_invalid_values(config_manager):
    invalid_config = {
        "debounce_ms": -1,
        "standard_rate": "fast",
        "smooth_transitions": "yes",
        "power_save_rate": 5000,
        "min_check_interval_ms": True,
    }
    with patch.object(config_manager.logger, 'warning'):
        validated_config = config_manager._validate_config(invalid_config)

    assert validated_config["debounce_ms"] == DEFAULTS["debounce_ms"]
    assert validated_config["standard_rate"] == DEFAULTS["standard_rate"]
    assert validated_config["smooth_transitions"] is True
    assert validated_config["power_save_rate"] is None
    assert validated_config["min_check_interval_ms"] == DEFAULTS["min_check_interval_ms"]


def test_validate_config_drops_unknown_keys(config_manager):
    with patch.object(config_manager.logger, 'warning') as mock_warning:
        validated_config = config_manager._validate_config({"font_size": 10})
    assert "font_size" not in validated_config
    mock_warning.assert_called_once()


def test_ms_values_are_integers(config_manager):
    validated_config = config_manager._validate_config({"debounce_ms": 150.0, "power_save_rate": 48})
    assert validated_config["debounce_ms"] == 150
    assert isinstance(validated_config["debounce_ms"], int)
    assert validated_config["power_save_rate"] == 48.0


def test_corrupt_file_is_backed_up_and_reset(config_manager):
    config_manager.config_path.write_text("{not json", encoding="utf-8")
    config = config_manager.load()
    assert config == DEFAULTS
    assert config_manager.config_path.with_name(config_manager.config_path.name + ".corrupt").exists()
    assert json.loads(config_manager.config_path.read_text(encoding="utf-8")) == DEFAULTS


def test_non_object_file_is_reset(config_manager):
    config_manager.config_path.write_text("[1, 2]", encoding="utf-8")
    assert config_manager.load() == DEFAULTS


def test_save_round_trips(config_manager):
    config = dict(DEFAULTS, debounce_ms=300)
    config_manager.save(config)
    assert config_manager.load()["debounce_ms"] == 300


def test_save_skips_unchanged(config_manager):
    config_manager.save(dict(DEFAULTS))
    with patch("tempfile.NamedTemporaryFile") as mock_tmp:
        config_manager.save(dict(DEFAULTS))
        mock_tmp.assert_not_called()


def test_save_raises_config_error_on_os_error(config_manager):
    with patch("tempfile.NamedTemporaryFile", side_effect=OSError("disk full")):
        with pytest.raises(ConfigError):
            config_manager.save(dict(DEFAULTS))
