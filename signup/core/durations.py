"""Duration parsing and token expiry arithmetic."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

_SHORTHAND_PATTERN = re.compile(
    r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>[a-z]*)\s*$",
    re.IGNORECASE,
)
_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "": 1,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}
_TIMEDELTA_ADAPTER = TypeAdapter(timedelta)


def parse_duration(value: str) -> timedelta:
    """Parse '1 day', '20m', '3600', 'PT1H' or '01:00:00' into a timedelta.

    Bare numbers are seconds. Anything that is not shorthand falls back to
    pydantic's timedelta parsing (ISO 8601 and ``[D day[s], ]HH:MM:SS``).
    """
    match = _SHORTHAND_PATTERN.match(value)
    if match is not None:
        unit = match.group("unit").lower()
        if unit in _UNIT_SECONDS:
            return timedelta(seconds=float(match.group("amount")) * _UNIT_SECONDS[unit])
    try:
        return _TIMEDELTA_ADAPTER.validate_python(value.strip())
    except ValidationError as exc:
        raise ValueError(f"Invalid duration: {value!r}.") from exc


def utcnow() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


def expires_at(now: datetime, lifetime: timedelta) -> datetime:
    """Return the expiry timestamp for a token issued at ``now``."""
    return now + lifetime


def is_expired(expires: datetime | None, now: datetime) -> bool:
    """Return True once ``now`` is past ``expires``.

    Naive timestamps (e.g. read back from SQLite) are treated as UTC.
    """
    if expires is None:
        return True
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=UTC)
    return now > expires
