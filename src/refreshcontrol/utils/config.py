"""
Configuration management for RefreshControl.

This module provides the ConfigManager for loading, validating, and saving application
settings to a JSON file, and the logging bootstrap shared by the service and the
command line. Writes are atomic and every value is validated against the defaults in
`constants.config`, so a hand-edited or truncated file can never push an out-of-range
debounce window or refresh rate into the reconciliation loop.
"""

import os
import sys
import json
import logging
import re
import shutil
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .helpers import get_app_data_path
from refreshcontrol import constants


class ObfuscatingFormatter(logging.Formatter):
    """
    Logging formatter that redacts user-specific paths from every record, including
    tracebacks, before it reaches the log file.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._path_regexes: List[re.Pattern] = []
        self._setup_paths()


    def _setup_paths(self) -> None:
        """Collects the home, app data and temp directories and compiles redaction patterns."""
        candidates = []
        try:
            candidates.append(str(Path.home().resolve()))
        except (OSError, RuntimeError):
            pass
        try:
            candidates.append(str(get_app_data_path().resolve()))
        except OSError:
            pass
        try:
            candidates.append(str(Path(tempfile.gettempdir()).resolve()))
        except OSError:
            pass

        normalized = {
            os.path.normcase(os.path.normpath(p)) for p in candidates if p and len(p) > 3
        }
        # Longest first so a nested path is replaced before its parent.
        ordered = sorted(normalized, key=len, reverse=True)
        self._path_regexes = [re.compile(re.escape(p), re.IGNORECASE) for p in ordered]


    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        for pattern in self._path_regexes:
            formatted = pattern.sub("<REDACTED_PATH>", formatted)
        return formatted


class ConfigError(Exception):
    """Custom exception for configuration-related errors, such as I/O or permission issues."""


class ConfigManager:
    """
    Manages loading, saving, and validation of RefreshControl's configuration.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initializes the ConfigManager.

        Args:
            config_path: Explicit config file location. Defaults to the config file
                inside the per-user app data directory.
        """
        self.config_path = Path(config_path or self.get_base_dir() / constants.config.defaults.CONFIG_FILENAME)
        self.logger = logging.getLogger("RefreshControl.Config")
        self._last_config: Optional[Dict[str, Any]] = None


    @classmethod
    def get_base_dir(cls) -> Path:
        """Returns the per-user directory holding config, settings and logs."""
        return get_app_data_path()


    @classmethod
    def get_log_file_path(cls) -> Path:
        """Returns the absolute path to the log file."""
        return cls.get_base_dir() / constants.logs.LOG_FILENAME


    @classmethod
    def get_settings_path(cls) -> Path:
        """Returns the absolute path to the settings backend file."""
        return cls.get_base_dir() / constants.config.defaults.SETTINGS_FILENAME


    @classmethod
    def setup_logging(cls, production: Optional[bool] = None) -> None:
        """
        Initializes logging with handlers for both a rotating file and the console.

        Args:
            production: Force production log levels. When None, the
                REFRESHCONTROL_PROD environment variable decides.
        """
        if production is None:
            production = os.environ.get(constants.app.ENV_VAR_PROD_MODE, "").lower() == "true"
        try:
            logger = logging.getLogger(constants.app.APP_NAME)
            logger.setLevel(logging.DEBUG)
            logger.handlers.clear()

            file_handler = RotatingFileHandler(
                cls.get_log_file_path(),
                maxBytes=constants.logs.MAX_LOG_SIZE,
                backupCount=constants.logs.LOG_BACKUP_COUNT,
                encoding='utf-8',
                delay=True,
            )
            file_handler.setLevel(constants.logs.PRODUCTION_LOG_LEVEL if production else constants.logs.FILE_LOG_LEVEL)
            file_handler.setFormatter(ObfuscatingFormatter(
                constants.logs.LOG_FORMAT,
                datefmt=constants.logs.LOG_DATE_FORMAT
            ))
            logger.addHandler(file_handler)

            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(constants.logs.PRODUCTION_LOG_LEVEL if production else constants.logs.CONSOLE_LOG_LEVEL)
            console_handler.setFormatter(logging.Formatter(constants.logs.CONSOLE_FORMAT))
            logger.addHandler(console_handler)

            logger.info("Logging initialized. Production mode: %s", production)
        except Exception as e:
            logging.basicConfig(level=logging.ERROR)
            logging.error("Failed to initialize file logging, falling back to basic console: %s", e)


    def _validate_numeric(self, key: str, value: Any, default: Any, min_v: float, max_v: float) -> Union[int, float]:
        """Validates a numeric value is within a given range."""
        try:
            if isinstance(value, bool):
                raise TypeError("Booleans are not numbers here")
            num_value = float(value)
            if not (min_v <= num_value <= max_v):
                raise ValueError("Value out of range")
            return int(num_value) if isinstance(default, int) else num_value
        except (TypeError, ValueError):
            self.logger.warning(constants.config.messages.INVALID_NUMERIC.format(key=key, value=value, default=default))
            return default


    def _validate_boolean(self, key: str, value: Any, default: bool) -> bool:
        """Validates a value is a boolean."""
        if isinstance(value, bool):
            return value
        self.logger.warning(constants.config.messages.INVALID_BOOLEAN.format(key=key, value=value, default=default))
        return default


    def _validate_optional_rate(self, key: str, value: Any) -> Optional[float]:
        """Validates an optional refresh rate; None means 'derive at runtime'."""
        if value is None:
            return None
        try:
            if isinstance(value, bool):
                raise TypeError("Booleans are not rates")
            rate = float(value)
            if not (constants.rates.modes.MINIMUM_RATE <= rate <= constants.rates.modes.MAXIMUM_RATE):
                raise ValueError("Rate out of range")
            return rate
        except (TypeError, ValueError):
            self.logger.warning(constants.config.messages.INVALID_OPTIONAL.format(key=key, value=value, default=None))
            return None


    def _validate_config(self, loaded_config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validates the configuration, merges it with defaults for missing keys,
        and sanitizes all values.
        """
        default_ref = constants.config.defaults.DEFAULT_CONFIG
        validated = dict(default_ref)
        validated.update(loaded_config)

        unknown_keys = set(loaded_config.keys()) - set(default_ref.keys())
        if unknown_keys:
            self.logger.warning("Ignoring unknown config fields: %s", ", ".join(sorted(unknown_keys)))

        min_rate = constants.rates.modes.MINIMUM_RATE
        max_rate = constants.rates.modes.MAXIMUM_RATE
        for key in ("standard_rate", "extreme_rate", "default_rate"):
            validated[key] = self._validate_numeric(key, validated.get(key), default_ref[key], min_rate, max_rate)

        max_ms = constants.timers.MAXIMUM_CONFIGURABLE_MS
        for key in ("debounce_ms", "min_check_interval_ms", "transition_restore_delay_ms"):
            validated[key] = self._validate_numeric(key, validated.get(key), default_ref[key], 1, max_ms)

        for key in ("smooth_transitions", "recheck_on_policy_edit"):
            validated[key] = self._validate_boolean(key, validated.get(key), default_ref[key])

        validated["power_save_rate"] = self._validate_optional_rate("power_save_rate", validated.get("power_save_rate"))

        return {key: validated[key] for key in default_ref}


    def load(self) -> Dict[str, Any]:
        """Loads and validates the configuration from the file."""
        if not self.config_path.exists():
            self.logger.info("Configuration file not found. Creating with default settings.")
            return self.reset_to_defaults()
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError:
            self.logger.error("Configuration file is corrupt. Backing it up and using defaults.")
            self._backup_corrupt_file()
            return self.reset_to_defaults()
        except OSError as e:
            msg = f"OS error reading config file {self.config_path}: {e}"
            self.logger.critical(msg)
            raise ConfigError(msg) from e

        if not isinstance(config, dict):
            self.logger.error("Configuration file does not hold an object. Backing it up and using defaults.")
            self._backup_corrupt_file()
            return self.reset_to_defaults()

        validated_config = self._validate_config(config)
        self._last_config = validated_config.copy()
        return validated_config


    def save(self, config: Dict[str, Any]) -> None:
        """Atomically saves the provided configuration to the file."""
        validated_config = self._validate_config(config)

        if self._last_config == validated_config and self.config_path.exists():
            self.logger.debug("Skipping save, configuration is unchanged.")
            return

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=self.config_path.parent, encoding="utf-8"
            ) as temp_f:
                json.dump(validated_config, temp_f, indent=4)
                temp_path = temp_f.name
            shutil.move(temp_path, self.config_path)
            self._last_config = validated_config.copy()
            self.logger.debug("Configuration saved successfully to %s", self.config_path)
        except OSError as e:
            msg = f"Failed to save configuration to {self.config_path}: {e}"
            self.logger.error(msg)
            raise ConfigError(msg) from e


    def reset_to_defaults(self) -> Dict[str, Any]:
        """Resets the configuration to factory defaults and saves it."""
        self.logger.info("Resetting configuration to default values.")
        defaults = dict(constants.config.defaults.DEFAULT_CONFIG)
        self.save(defaults)
        return defaults


    def _backup_corrupt_file(self) -> None:
        try:
            corrupt_path = self.config_path.with_name(f"{self.config_path.name}.corrupt")
            shutil.move(self.config_path, corrupt_path)
        except OSError:
            self.logger.exception("Failed to back up corrupt config file.")
