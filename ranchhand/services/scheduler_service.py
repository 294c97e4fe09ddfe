"""
ranchhand.services.scheduler_service — Weekly Report Scheduler
================================================================

The weekly slot (weekday, hour, minute) and the date of the last
completed scheduled report both live in the ``settings`` table and are
re-read on every tick, so a /set_report_schedule takes effect on the next
minute without a restart.

Firing rule, checked once a minute in the configured timezone::

    (weekday, hour, minute) == schedule  and  today != last_report_date

The marker is advanced only after the whole cycle returns.  A failing
cycle leaves it alone, so the cycle is retried on the next matching tick
(in practice, the same slot next week unless an admin runs it manually).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from ranchhand.config import DefaultSchedule
from ranchhand.database.engine import run_db
from ranchhand.database.models import AdminActionType
from ranchhand.database.seed import LAST_REPORT_DATE_KEY, REPORT_SCHEDULE_KEY
from ranchhand.engine.clock import ClockReading, read_local_clock
from ranchhand.services.admin_service import log_admin_action
from ranchhand.services.settings_service import get_setting_value, put_setting, read_setting
from ranchhand.services.weekly_cycle import CycleResult

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)


class ScheduleValidationError(ValueError):
    """A schedule value is outside its allowed range."""


@dataclass(frozen=True, slots=True)
class ScheduleConfig:
    """Weekly slot.  ``weekday``: 0 = Sunday … 6 = Saturday."""

    weekday: int
    hour: int
    minute: int

    def validate(self) -> None:
        if not 0 <= self.weekday <= 6:
            raise ScheduleValidationError("weekday must be 0-6 (0 = Sunday)")
        if not 0 <= self.hour <= 23:
            raise ScheduleValidationError("hour must be 0-23")
        if not 0 <= self.minute <= 59:
            raise ScheduleValidationError("minute must be 0-59")

    def describe(self) -> str:
        return f"{WEEKDAY_NAMES[self.weekday]} {self.hour:02d}:{self.minute:02d}"

    @classmethod
    def from_default(cls, default: DefaultSchedule) -> ScheduleConfig:
        return cls(default.weekday, default.hour, default.minute)

    @classmethod
    def from_value(cls, value, default: ScheduleConfig) -> ScheduleConfig:
        """Parse a stored JSON value, falling back to *default* if unusable."""
        if not isinstance(value, dict):
            return default
        try:
            parsed = cls(int(value["weekday"]), int(value["hour"]), int(value["minute"]))
            parsed.validate()
        except (KeyError, TypeError, ValueError):
            logger.warning("Stored report schedule %r is invalid; using default", value)
            return default
        return parsed


# ---------------------------------------------------------------------------
# Persistence (sync — call via run_db)
# ---------------------------------------------------------------------------

def get_schedule(engine: Engine, default: ScheduleConfig | None = None) -> ScheduleConfig:
    default = default or ScheduleConfig.from_default(DefaultSchedule())
    return ScheduleConfig.from_value(read_setting(engine, REPORT_SCHEDULE_KEY), default)


def set_schedule(
    engine: Engine,
    schedule: ScheduleConfig,
    *,
    actor_id: int,
) -> ScheduleConfig:
    """Validate and store *schedule*, clear the last-report marker, audit it.

    Raises
    ------
    ScheduleValidationError
        If any field is out of range.  Nothing is written.
    """
    schedule.validate()
    with Session(engine) as session:
        before = get_setting_value(session, REPORT_SCHEDULE_KEY)
        put_setting(
            session, key=REPORT_SCHEDULE_KEY, value=asdict(schedule), category="reports",
        )
        put_setting(session, key=LAST_REPORT_DATE_KEY, value=None, category="reports")
        log_admin_action(
            session,
            actor_id=actor_id,
            action_type=AdminActionType.SCHEDULE_UPDATE,
            target_table="settings",
            target_id=REPORT_SCHEDULE_KEY,
            before=before if isinstance(before, dict) else None,
            after=asdict(schedule),
        )
        session.commit()

    logger.info("Report schedule set to %s by %s", schedule.describe(), actor_id)
    return schedule


def get_last_report_date(engine: Engine) -> str | None:
    value = read_setting(engine, LAST_REPORT_DATE_KEY)
    return value if isinstance(value, str) else None


def set_last_report_date(engine: Engine, date_key: str | None) -> None:
    with Session(engine) as session:
        put_setting(session, key=LAST_REPORT_DATE_KEY, value=date_key, category="reports")
        session.commit()


def is_report_time(
    clock: ClockReading,
    schedule: ScheduleConfig,
    last_report_date: str | None,
) -> bool:
    """Whether a scheduled report is due at *clock*."""
    return (
        clock.weekday == schedule.weekday
        and clock.hour == schedule.hour
        and clock.minute == schedule.minute
        and clock.date_key != last_report_date
    )


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class WeeklyReportScheduler:
    """Fires *cycle* once per configured weekly slot, or on demand.

    Scheduled ticks and manual runs share one lock, so two cycles never
    overlap.
    """

    def __init__(
        self,
        engine: Engine,
        cycle: Callable[[], Awaitable[CycleResult]],
        tz: ZoneInfo,
        default_schedule: DefaultSchedule | None = None,
    ) -> None:
        self.engine = engine
        self.cycle = cycle
        self.tz = tz
        self.default = ScheduleConfig.from_default(default_schedule or DefaultSchedule())
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def tick(self, now: datetime | None = None) -> bool:
        """Check the clock and run the cycle if due.  Returns whether it ran
        to completion."""
        clock = read_local_clock(self.tz, now)
        schedule = await run_db(get_schedule, self.engine, self.default)
        last = await run_db(get_last_report_date, self.engine)
        if not is_report_time(clock, schedule, last):
            return False

        async with self._lock:
            # A manual run may have finished while we waited; re-check the marker
            last = await run_db(get_last_report_date, self.engine)
            if clock.date_key == last:
                return False

            logger.info("Weekly report due (%s, %s)", schedule.describe(), clock.date_key)
            try:
                result = await self.cycle()
            except Exception:
                logger.exception("Weekly report cycle failed; will retry on next matching tick")
                return False

            await run_db(set_last_report_date, self.engine, clock.date_key)
            logger.info(
                "Weekly report completed for %s (skipped=%s, pruned=%d)",
                clock.date_key, result.skipped, result.deleted,
            )
            return True

    async def run_now(self) -> CycleResult:
        """Run the cycle immediately.  Leaves the last-report marker alone.

        Exceptions from the cycle propagate to the caller.
        """
        async with self._lock:
            logger.info("Manual weekly report run")
            return await self.cycle()
