"""
ranchhand.services.settings_service — Settings CRUD
=====================================================

Typed read/write access to the ``settings`` table.  Values are stored as
JSON strings; readers get the decoded value back.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from ranchhand.database.models import Setting

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_setting_value(session: Session, key: str, default=None):
    """Read a single setting's parsed value from an existing session.

    Parameters
    ----------
    session : Session
        An open SQLAlchemy session.
    key : str
        The setting key to look up.
    default
        Returned when the key does not exist.

    Returns
    -------
    The JSON-decoded value, the raw string if it isn't valid JSON, or
    *default*.
    """
    row = session.get(Setting, key)
    if row is None:
        return default
    try:
        return json.loads(row.value_json)
    except (json.JSONDecodeError, TypeError):
        return row.value_json


def read_setting(engine: Engine, key: str, default=None):
    """Engine-level convenience wrapper around :func:`get_setting_value`."""
    with Session(engine) as session:
        return get_setting_value(session, key, default)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def put_setting(
    session: Session,
    *,
    key: str,
    value: Any,
    category: str = "general",
    description: str | None = None,
) -> Setting:
    """Insert or update one setting inside the caller's transaction."""
    value_json = json.dumps(value)
    existing = session.get(Setting, key)
    if existing:
        existing.value_json = value_json
        if category:
            existing.category = category
        if description is not None:
            existing.description = description
    else:
        existing = Setting(
            key=key,
            value_json=value_json,
            category=category,
            description=description,
        )
        session.add(existing)
    logger.debug("Setting %s staged", key)
    return existing
