"""
JSON-file key/value settings backend.

Holds the serialized policy blob and the mirrored refresh-rate settings. Every write
replaces the whole file atomically, so a reader in another process (or another thread)
sees either the previous or the next version of a value, never a torn one. Several
processes share the file (the running service and the command line), so the cache is
reloaded whenever the file on disk has been replaced since it was last read.
"""

import json
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .config import ConfigError


class SettingsStore:
    """
    Thread-safe key/value store backed by a single JSON object on disk.

    Values are cached in memory together with the file's (mtime, size, inode)
    signature. Reads reload the cache when the signature changed; puts reload first
    and then rewrite the file under the same lock, so a put never drops a value
    another process wrote in the meantime.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.logger = logging.getLogger("RefreshControl.SettingsStore")
        self._lock = threading.Lock()
        self._signature: Optional[Tuple[int, int, int]] = self._disk_signature()
        self._values: Dict[str, Any] = self._read_file()


    def get_float(self, key: str, default: float) -> float:
        with self._lock:
            self._reload_if_changed()
            value = self._values.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            self.logger.warning("Setting %s holds non-numeric value %r, using %s", key, value, default)
            return default


    def put_float(self, key: str, value: float) -> None:
        self._put(key, float(value))


    def get_string(self, key: str) -> Optional[str]:
        with self._lock:
            self._reload_if_changed()
            value = self._values.get(key)
        return value if isinstance(value, str) else None


    def put_string(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Setting {key} expects a string, got {type(value).__name__}")
        self._put(key, value)


    def _put(self, key: str, value: Any) -> None:
        with self._lock:
            self._reload_if_changed()
            if self._values.get(key) == value and self._signature is not None:
                return
            snapshot = dict(self._values)
            snapshot[key] = value
            self._write_file(snapshot)
            self._values = snapshot
            self._signature = self._disk_signature()


    def _disk_signature(self) -> Optional[Tuple[int, int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"OS error reading settings file {self.path}: {e}"
            self.logger.critical(msg)
            raise ConfigError(msg) from e
        return (stat.st_mtime_ns, stat.st_size, stat.st_ino)


    def _reload_if_changed(self) -> None:
        """Refreshes the cache if another writer replaced the file. Caller holds the lock."""
        signature = self._disk_signature()
        if signature == self._signature:
            return
        self.logger.debug("Settings file %s changed on disk, reloading.", self.path)
        self._values = self._read_file()
        self._signature = self._disk_signature()


    def _read_file(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            self.logger.error("Settings file %s is corrupt. Backing it up and starting empty.", self.path)
            self._backup_corrupt_file()
            return {}
        except OSError as e:
            msg = f"OS error reading settings file {self.path}: {e}"
            self.logger.critical(msg)
            raise ConfigError(msg) from e

        if not isinstance(data, dict):
            self.logger.error("Settings file %s does not hold an object. Backing it up and starting empty.", self.path)
            self._backup_corrupt_file()
            return {}
        return data


    def _write_file(self, values: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=self.path.parent, encoding="utf-8"
            ) as temp_f:
                json.dump(values, temp_f, indent=4, sort_keys=True)
                temp_path = temp_f.name
            shutil.move(temp_path, self.path)
        except OSError as e:
            msg = f"Failed to write settings to {self.path}: {e}"
            self.logger.error(msg)
            raise ConfigError(msg) from e


    def _backup_corrupt_file(self) -> None:
        try:
            shutil.move(self.path, self.path.with_name(f"{self.path.name}.corrupt"))
        except OSError:
            self.logger.exception("Failed to back up corrupt settings file.")
