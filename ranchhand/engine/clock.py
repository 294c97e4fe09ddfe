"""
ranchhand.engine.clock — Time helpers
=======================================

Ledger timestamps are epoch milliseconds (UTC).  The weekly schedule is
expressed in one named timezone, so the scheduler reads the wall clock
through :func:`read_local_clock`.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from ranchhand.constants import WEEK_MS

_SINCE_RE = re.compile(r"^(\d+)\s*([hd])$", re.IGNORECASE)

_HOUR_MS = 60 * 60 * 1000
_DAY_MS = 24 * _HOUR_MS


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_since_to_ts(since: str | None, now: int | None = None) -> int | None:
    """Turn ``"24h"`` / ``"7d"`` into an epoch-ms lower bound.

    Anything unparseable (including ``None``) means all-time and returns
    ``None``.
    """
    if not since:
        return None
    m = _SINCE_RE.match(since.strip())
    if not m:
        return None
    n = int(m.group(1))
    span = n * _HOUR_MS if m.group(2).lower() == "h" else n * _DAY_MS
    return (now if now is not None else now_ms()) - span


def week_ago_ts(now: int | None = None) -> int:
    return (now if now is not None else now_ms()) - WEEK_MS


@dataclass(frozen=True, slots=True)
class ClockReading:
    """Wall-clock time in the report timezone.  ``weekday``: 0 = Sunday."""

    weekday: int
    hour: int
    minute: int
    date_key: str  # YYYY-MM-DD


def read_local_clock(tz: ZoneInfo, now: datetime | None = None) -> ClockReading:
    """Read (weekday, hour, minute, date) in *tz*.

    *now* may be naive (treated as UTC) or aware; tests pass fixed instants.
    """
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    local = now.astimezone(tz)
    return ClockReading(
        weekday=local.isoweekday() % 7,
        hour=local.hour,
        minute=local.minute,
        date_key=local.date().isoformat(),
    )
