"""
ranchhand.database.seed — Default Settings Seeder
==================================================

Idempotent — only inserts keys that don't already exist, so a schedule an
admin stored with /set_report_schedule is never overwritten on restart.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from ranchhand.config import DEFAULT_HOUR, DEFAULT_MINUTE, DEFAULT_WEEKDAY, DefaultSchedule
from ranchhand.database.models import Setting

logger = logging.getLogger(__name__)

REPORT_SCHEDULE_KEY = "report_schedule"
LAST_REPORT_DATE_KEY = "last_report_date"


def default_settings(schedule: DefaultSchedule | None = None) -> dict[str, tuple[object, str, str]]:
    """Return the settings catalogue: key → (value, category, description)."""
    schedule = schedule or DefaultSchedule(DEFAULT_WEEKDAY, DEFAULT_HOUR, DEFAULT_MINUTE)
    return {
        REPORT_SCHEDULE_KEY: (
            {"weekday": schedule.weekday, "hour": schedule.hour, "minute": schedule.minute},
            "reports",
            "Weekly report slot (weekday 0=Sunday, hour, minute) in the configured timezone",
        ),
        LAST_REPORT_DATE_KEY: (
            None,
            "reports",
            "Local date of the last completed scheduled report (YYYY-MM-DD)",
        ),
    }


def seed_default_settings(engine: Engine, schedule: DefaultSchedule | None = None) -> int:
    """Insert missing default settings.  Returns how many rows were added."""
    added = 0
    with Session(engine) as session:
        for key, (value, category, description) in default_settings(schedule).items():
            if session.get(Setting, key) is not None:
                continue
            session.add(Setting(
                key=key,
                value_json=json.dumps(value),
                category=category,
                description=description,
            ))
            added += 1
        session.commit()

    if added:
        logger.info("Seeded %d default settings", added)
    return added
