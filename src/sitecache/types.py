"""
Core types for the site cache.

This module defines the fundamental data structures shared by the facade and
every backend:
- Expiration convenience constants (MINUTE_IN_SECONDS, ...)
- GroupScope enum for group classification
- Entry dataclass for a stored payload and its absolute expiry
- Helpers for argument coercion and timestamps
"""

from __future__ import annotations

import math
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

MINUTE_IN_SECONDS = 60
HOUR_IN_SECONDS = 3600
DAY_IN_SECONDS = 86400
WEEK_IN_SECONDS = 604800
YEAR_IN_SECONDS = 31536000

DEFAULT_GROUP = "default"
DEFAULT_PRIORITY = 10

# Result of coercing a non-numeric argument; backends read it as 0.
NAN = float("nan")

Clock = Callable[[], float]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class GroupScope(str, Enum):
    """How a group's keys are scoped."""

    GLOBAL = "global"
    NETWORK = "network"
    SITE = "site"


@dataclass
class Entry:
    """A cached payload.

    Attributes:
        data: The stored value.
        expire: Absolute Unix timestamp in seconds, or 0 for no expiry.
    """

    data: Any
    expire: int = 0

    def is_expired(self, now: int) -> bool:
        """Check whether the entry's expiry lies strictly in the past."""
        return bool(self.expire) and self.expire < now

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted shape."""
        return {"data": self.data, "expire": self.expire}


def current_time(clock: Clock = time.time) -> int:
    """Get the current Unix time in whole seconds."""
    return math.floor(clock())


def coerce_int(value: Any, default: int) -> int | float:
    """Coerce a caller-supplied number to an int.

    None falls back to ``default``. Ints pass through, finite floats are
    truncated, and strings yield their leading integer ("15s" -> 15).
    Anything else yields NAN.

    Args:
        value: Raw argument.
        default: Value used when the argument is omitted.

    Returns:
        The coerced integer, or NAN.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return NAN
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else NAN
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else NAN
    return NAN


def as_int(value: int | float) -> int:
    """Read a coerced argument, mapping NAN (or any non-int) to 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def is_number(value: Any) -> bool:
    """Check whether a stored payload counts as numeric for incr/decr."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def copy_payload(data: Any) -> Any:
    """Shallow-copy dict payloads so cached state never aliases caller state."""
    if isinstance(data, dict):
        return dict(data)
    return data
