"""
Severity levels and the threshold filter.
"""

from __future__ import annotations

from enum import IntEnum


class Level(IntEnum):
    """Ordered severities. ``OFF`` is only meaningful as a threshold."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    OFF = 5


_ALIASES = {
    "WARNING": Level.WARN,
    "CRITICAL": Level.FATAL,
    "NONE": Level.OFF,
}


def should_emit(record_level: Level | int, threshold: Level | int) -> bool:
    """Return True iff a record at ``record_level`` passes ``threshold``."""
    return record_level < Level.OFF and record_level >= threshold


def parse_level(value: Level | int | str) -> Level:
    """
    Coerce a level name or number into a :class:`Level`.

    Accepts the canonical names (case-insensitive), the stdlib spellings
    ``WARNING``/``CRITICAL``, and integers in range.
    """
    if isinstance(value, Level):
        return value
    if isinstance(value, int):
        return Level(value)
    name = str(value).strip().upper()
    if name in Level.__members__:
        return Level[name]
    if name in _ALIASES:
        return _ALIASES[name]
    raise ValueError(f"unknown log level: {value!r}")
