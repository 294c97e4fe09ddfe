"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import BigInteger, Engine, create_engine, select
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from ranchhand.config import RanchConfig
from ranchhand.database.engine import init_db
from ranchhand.database.models import AdminLog, GatherEvent, ItemType
from ranchhand.services.settings_service import put_setting

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite renders JSONB as TEXT; BigInteger → INTEGER so autoincrement works.
# ---------------------------------------------------------------------------
_sqlite_compat_registered = False


def _register_sqlite_compat():
    global _sqlite_compat_registered
    if _sqlite_compat_registered:
        return

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _sqlite_compat_registered = True


_register_sqlite_compat()


def run_async(coro):
    """Run an async coroutine in a new event loop (no pytest-asyncio)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Ranchhand tables and default settings.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def ranch_config() -> RanchConfig:
    return RanchConfig(
        ranch_name="Test Ranch",
        listen_channel_id=555,
        guild_id=777,
        admin_role_id=888,
    )


_message_seq = 0


def add_gather(
    engine: Engine,
    *,
    ts: int,
    discord_id: str | None = "111111111111111111",
    item_type: ItemType = ItemType.EGGS,
    amount: int = 1,
    value: float = 0.0,
    ranch_id: int | None = None,
    channel_id: str = "555",
    subtype: str | None = None,
) -> int:
    """Insert one ledger row directly and return its id."""
    global _message_seq
    _message_seq += 1
    with Session(engine) as session:
        row = GatherEvent(
            ts=ts,
            channel_id=channel_id,
            message_id=f"m{_message_seq}",
            discord_id=discord_id,
            ranch_id=ranch_id,
            item_type=item_type.value,
            amount=amount,
            value=value,
            subtype=subtype,
        )
        session.add(row)
        session.commit()
        return row.id


def store_setting(engine: Engine, key: str, value) -> None:
    """Write one raw settings value, bypassing any validation."""
    with Session(engine) as session:
        put_setting(session, key=key, value=value)
        session.commit()


def admin_log_rows(engine: Engine) -> list[AdminLog]:
    """Every audit row, newest first, detached from its session."""
    with Session(engine) as session:
        rows = session.scalars(select(AdminLog).order_by(AdminLog.id.desc())).all()
        session.expunge_all()
        return list(rows)
