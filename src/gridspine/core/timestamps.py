"""
Time helpers: UTC now, ULID event ids, calendar-date parsing.

Edit events are stamped with ``utc_now()`` and identified by a time-sortable
``generate_ulid()``. ``parse_calendar_date`` is the one place that decides
whether a raw value names a calendar date; schema inference, date formatting,
date coercion and date bucketing all go through it.

Tags:
    timestamps, ulid, utc, datetime, gridspine, stdlib-only

Doc-Types:
    - API Reference
    - Utility Documentation
"""

import random
import re
import time
from datetime import UTC, date, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_ulid() -> str:
    """26-character Crockford base32 id: 48-bit millisecond time, 80 random bits.

    Later ids sort after earlier ones.
    """
    millis = time.time_ns() // 1_000_000
    return _base32(millis, 10) + _base32(random.getrandbits(80), 16)


def to_iso8601(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


# YYYY-MM-DD, optionally followed by a time part ("T" or space separated).
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}([T ].+)?$")


def parse_calendar_date(value: object) -> date | None:
    """
    Interpret ``value`` as a calendar date, or return None.

    Accepts ``date`` / ``datetime`` objects and ISO-8601 date or datetime
    strings (a trailing ``Z`` is accepted). Timezone-aware datetimes keep
    their own calendar day. Numbers and numeric strings are never dates.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _ISO_DATE.match(text):
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


_CROCKFORD = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def _base32(value: int, width: int) -> str:
    digits = []
    for _ in range(width):
        value, index = divmod(value, 32)
        digits.append(_CROCKFORD[index])
    return "".join(reversed(digits))
