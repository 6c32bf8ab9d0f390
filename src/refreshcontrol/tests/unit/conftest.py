
import time
import threading

import pytest
from PyQt6.QtCore import QCoreApplication
from PyQt6.QtTest import QTest


class FakeSettings:
    """In-memory settings backend recording every put."""

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.puts = []
        self._lock = threading.Lock()

    def get_float(self, key, default):
        with self._lock:
            value = self.values.get(key)
        return default if value is None else float(value)

    def put_float(self, key, value):
        with self._lock:
            self.values[key] = float(value)
            self.puts.append((key, float(value)))

    def get_string(self, key):
        with self._lock:
            value = self.values.get(key)
        return value if isinstance(value, str) else None

    def put_string(self, key, value):
        with self._lock:
            self.values[key] = value
            self.puts.append((key, value))

    def puts_for(self, key):
        with self._lock:
            return [value for k, value in self.puts if k == key]


class FakeSink:
    """Rate sink recording every range it receives."""

    def __init__(self, supported=None, fail=False):
        self.calls = []
        self.supported = list(supported or [])
        self.fail = fail

    def set_range(self, min_rate, max_rate):
        if self.fail:
            raise RuntimeError("sink rejected the write")
        self.calls.append((min_rate, max_rate))

    def supported_rates(self):
        return list(self.supported)


@pytest.fixture(scope="session")
def q_app():
    """Provides a QCoreApplication instance for the test session."""
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def settings():
    return FakeSettings()


@pytest.fixture
def sink():
    return FakeSink(supported=[48.0, 60.0, 120.0])


@pytest.fixture
def wait_until(q_app):
    """Processes Qt events until `predicate` holds or `timeout_ms` elapses."""
    def _wait(predicate, timeout_ms=1000):
        deadline = time.monotonic() + timeout_ms / 1000.0
        while time.monotonic() < deadline:
            if predicate():
                return True
            QTest.qWait(10)
        return predicate()
    return _wait


@pytest.fixture
def settings_factory():
    return FakeSettings


@pytest.fixture
def sink_factory():
    return FakeSink
