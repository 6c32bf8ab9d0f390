"""
Per-application mode policy.

The policy is persisted as a single string in the settings backend: one bucket per
non-default mode, in `Mode` order, joined by ':'; each bucket holds zero or more
'appId,' segments. For example, with com.example.game in Extreme mode:

    ":com.example.game,"

In memory it is a plain `{app_id: Mode}` dict; the string form only exists at the
settings boundary.
"""

import logging
import threading
from typing import Dict, List, Optional

from refreshcontrol import constants
from refreshcontrol.core.backends import SettingsBackend
from refreshcontrol.core.modes import Mode

logger = logging.getLogger("RefreshControl.PolicyStore")


class MalformedPolicyError(ValueError):
    """Raised by `decode_policy` when a blob does not match the bucket layout."""


def validate_app_id(app_id: str) -> str:
    """Returns `app_id` unchanged, or raises ValueError if it cannot be stored."""
    fmt = constants.rates.policy
    if not isinstance(app_id, str) or not app_id:
        raise ValueError("Application id must be a non-empty string")
    if fmt.BUCKET_SEPARATOR in app_id or fmt.ID_TERMINATOR in app_id:
        raise ValueError(
            f"Application id {app_id!r} must not contain "
            f"{fmt.BUCKET_SEPARATOR!r} or {fmt.ID_TERMINATOR!r}"
        )
    return app_id


def _strip_legacy_label(bucket: str) -> str:
    for label in constants.rates.policy.LEGACY_BUCKET_LABELS:
        if bucket.startswith(label):
            return bucket[len(label):]
    return bucket


def decode_policy(blob: str) -> Dict[str, Mode]:
    """
    Parses a serialized policy into a mapping.

    Raises:
        MalformedPolicyError: If the bucket count does not match the number of
            non-default modes, or a bucket is not a sequence of terminated ids.
    """
    fmt = constants.rates.policy
    modes = Mode.non_default()
    buckets = blob.split(fmt.BUCKET_SEPARATOR)
    if len(buckets) != len(modes):
        raise MalformedPolicyError(f"Expected {len(modes)} buckets, found {len(buckets)}")

    policy: Dict[str, Mode] = {}
    for mode, bucket in zip(modes, buckets):
        bucket = _strip_legacy_label(bucket)
        if not bucket:
            continue
        if not bucket.endswith(fmt.ID_TERMINATOR):
            raise MalformedPolicyError(f"Bucket for {mode.name} is not terminated: {bucket!r}")
        for app_id in bucket[:-1].split(fmt.ID_TERMINATOR):
            if not app_id:
                raise MalformedPolicyError(f"Empty application id in bucket for {mode.name}")
            # An id listed twice keeps its first (lowest) mode.
            policy.setdefault(app_id, mode)
    return policy


def encode_policy(policy: Dict[str, Mode]) -> str:
    """Serializes a mapping into the bucket format. DEFAULT entries are omitted."""
    fmt = constants.rates.policy
    buckets: List[str] = []
    for mode in Mode.non_default():
        ids = [app_id for app_id, m in policy.items() if m is mode]
        buckets.append("".join(f"{app_id}{fmt.ID_TERMINATOR}" for app_id in ids))
    return fmt.BUCKET_SEPARATOR.join(buckets)


class PolicyStore:
    """
    Read/write access to the application → mode mapping.

    Every mutation is persisted with a single `put_string`, which the settings
    backend applies atomically. Calls may come from the host thread and the
    reconciliation worker; a lock serializes them.
    """

    def __init__(self, settings: SettingsBackend, key: Optional[str] = None) -> None:
        self.settings = settings
        self.key = key or constants.rates.keys.POLICY
        self.logger = logger
        self._lock = threading.RLock()

    def load(self) -> Dict[str, Mode]:
        """
        Reads the persisted policy, creating an empty one if none exists.

        A malformed blob is replaced by the empty policy and re-persisted.
        """
        with self._lock:
            blob = self.settings.get_string(self.key)
            if not blob:
                self.logger.info("No stored policy under '%s', initializing empty buckets.", self.key)
                return self._persist({})
            try:
                return decode_policy(blob)
            except MalformedPolicyError as e:
                self.logger.warning("Stored policy is malformed (%s). Resetting to defaults.", e)
                return self._persist({})

    def get(self, app_id: str) -> Mode:
        """Mode for `app_id`, or Mode.DEFAULT if it is not listed."""
        if not app_id:
            return Mode.DEFAULT
        return self.load().get(app_id, Mode.DEFAULT)

    def set(self, app_id: str, mode: Mode) -> None:
        """Moves `app_id` into the bucket for `mode`; DEFAULT removes it from every bucket."""
        validate_app_id(app_id)
        mode = Mode.parse(mode)
        with self._lock:
            policy = self.load()
            policy.pop(app_id, None)
            if mode is not Mode.DEFAULT:
                policy[app_id] = mode
            self._persist(policy)
        self.logger.info("Policy for %s set to %s", app_id, mode.name)

    def entries(self) -> Dict[str, Mode]:
        """Snapshot of every non-default entry."""
        return dict(self.load())

    def _persist(self, policy: Dict[str, Mode]) -> Dict[str, Mode]:
        self.settings.put_string(self.key, encode_policy(policy))
        return policy
