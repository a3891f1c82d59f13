"""Parsing and formatting of Prometheus-style durations."""

from __future__ import annotations

import re
from datetime import timedelta

_DURATION_RE = re.compile(
    r"(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?"
)

_MS = 1
_SECOND_MS = 1000 * _MS
_MINUTE_MS = 60 * _SECOND_MS
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS
_WEEK_MS = 7 * _DAY_MS
_YEAR_MS = 365 * _DAY_MS

_UNIT_MS = (_YEAR_MS, _WEEK_MS, _DAY_MS, _HOUR_MS, _MINUTE_MS, _SECOND_MS, _MS)

_MAX_NANOS = 2**63 - 1
_NS_PER_US = 1000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_H = 60 * _NS_PER_MIN


class DurationError(ValueError):
    """Raised when a duration string is not valid."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``30d`` or ``1h30m`` into a timedelta."""
    if text == "0":
        return timedelta(0)
    if text == "":
        raise DurationError("empty duration string")
    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise DurationError(f"not a valid duration string: {text!r}")
    total_ms = sum(int(g) * unit for g, unit in zip(match.groups(), _UNIT_MS) if g)
    if total_ms * _NS_PER_MS > _MAX_NANOS:
        raise DurationError("duration out of range")
    return timedelta(milliseconds=total_ms)


def format_duration(value: timedelta) -> str:
    """Format a timedelta the way Prometheus prints durations (e.g. ``5m``, ``30d``)."""
    ms = value // timedelta(milliseconds=1)
    if ms == 0:
        return "0s"
    parts = []
    for unit, mult, exact in (
        ("y", _YEAR_MS, True),
        ("w", _WEEK_MS, True),
        ("d", _DAY_MS, False),
        ("h", _HOUR_MS, False),
        ("m", _MINUTE_MS, False),
        ("s", _SECOND_MS, False),
        ("ms", _MS, False),
    ):
        if exact and ms % mult != 0:
            continue
        count = ms // mult
        if count > 0:
            parts.append(f"{count}{unit}")
            ms -= count * mult
    return "".join(parts)


def _nanos(value: timedelta) -> int:
    return (value // timedelta(microseconds=1)) * _NS_PER_US


def _with_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if frac == 0:
        return str(whole)
    width = len(str(unit)) - 1
    digits = str(frac).rjust(width, "0").rstrip("0")
    return f"{whole}.{digits}"


def go_duration_string(value: timedelta) -> str:
    """Format a timedelta in hours/minutes/seconds form, e.g. ``720h0m0s``."""
    ns = _nanos(value)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    u = abs(ns)
    if u < _NS_PER_S:
        if u < _NS_PER_US:
            return f"{sign}{u}ns"
        if u < _NS_PER_MS:
            return f"{sign}{_with_fraction(u, _NS_PER_US)}µs"
        return f"{sign}{_with_fraction(u, _NS_PER_MS)}ms"
    hours, rem = divmod(u, _NS_PER_H)
    minutes, rem = divmod(rem, _NS_PER_MIN)
    seconds = f"{_with_fraction(rem, _NS_PER_S)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"