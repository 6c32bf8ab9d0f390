"""
Operating modes and the refresh-rate range each one resolves to.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Tuple

from refreshcontrol import constants


class Mode(IntEnum):
    """Per-application operating mode. Values are stable; they are used by callers."""
    DEFAULT = 0
    STANDARD = 1
    EXTREME = 2

    @classmethod
    def non_default(cls) -> Tuple["Mode", ...]:
        """Modes that own a persisted bucket, in bucket order."""
        return tuple(mode for mode in cls if mode is not cls.DEFAULT)

    @classmethod
    def parse(cls, value) -> "Mode":
        """Accepts a Mode, its integer value or its case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f"Unknown mode: {value!r}") from None
        return cls(value)


@dataclass(frozen=True)
class RateRange:
    """A (min, max) refresh-rate pair in Hz."""
    min_rate: float
    max_rate: float

    def clamped(self) -> "RateRange":
        """Returns a range whose minimum never exceeds its maximum."""
        if self.min_rate > self.max_rate:
            return RateRange(self.max_rate, self.max_rate)
        return self

    def as_tuple(self) -> Tuple[float, float]:
        return (self.min_rate, self.max_rate)


class ModeRates:
    """Fixed peak rate of every non-default mode."""

    def __init__(self, overrides: Optional[Dict[Mode, float]] = None) -> None:
        self._rates: Dict[Mode, float] = {
            Mode.STANDARD: constants.rates.modes.STANDARD_RATE,
            Mode.EXTREME: constants.rates.modes.EXTREME_RATE,
        }
        if overrides:
            for mode, rate in overrides.items():
                if mode is Mode.DEFAULT:
                    raise ValueError("The default mode has no fixed rate")
                self._rates[mode] = float(rate)

    @classmethod
    def from_config(cls, config: Dict) -> "ModeRates":
        return cls({
            Mode.STANDARD: config.get("standard_rate", constants.rates.modes.STANDARD_RATE),
            Mode.EXTREME: config.get("extreme_rate", constants.rates.modes.EXTREME_RATE),
        })

    def rate_for(self, mode: Mode) -> float:
        if mode is Mode.DEFAULT:
            raise ValueError("The default mode resolves to the system default rates")
        return self._rates[mode]

    def resolve(self, mode: Mode, default_range: RateRange) -> RateRange:
        """Target range for `mode`, clamping the default minimum under the mode's peak."""
        if mode is Mode.DEFAULT:
            return default_range
        return RateRange(default_range.min_rate, self.rate_for(mode)).clamped()
