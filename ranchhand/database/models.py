"""
ranchhand.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- gathers            — Append-only ledger of parsed gather events
- report_subscribers — Members who opted in to weekly DM reports
- settings           — Key-value store (report schedule, last report date)
- admin_log          — Append-only audit trail of privileged actions
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Ranchhand ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ItemType(enum.StrEnum):
    """Every kind of economic action the extractor can recognise."""
    EGGS = "eggs"
    MILK = "milk"
    HERD_BUY = "herd_buy"
    HERD_SELL = "herd_sell"

    @property
    def is_herd(self) -> bool:
        return self in (ItemType.HERD_BUY, ItemType.HERD_SELL)


class AdminActionType(enum.StrEnum):
    """Categories of privileged actions recorded in admin_log."""
    SCHEDULE_UPDATE = "SCHEDULE_UPDATE"
    WEEK_RESET = "WEEK_RESET"
    MANUAL_REPORT = "MANUAL_REPORT"


# ---------------------------------------------------------------------------
# GatherEvent — one parsed egg/milk/herd action
# ---------------------------------------------------------------------------
class GatherEvent(Base):
    """Immutable ledger row.

    ``ts`` is epoch milliseconds so window arithmetic stays integer-only.
    ``message_id`` is the idempotency key: one row per Discord message.
    """
    __tablename__ = "gathers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_id: Mapped[str] = mapped_column(String(32), nullable=False)
    message_id: Mapped[str] = mapped_column(String(32), nullable=False)
    discord_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    ranch_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    item_type: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    subtype: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_gathers_message_id", "message_id", unique=True),
        Index("ix_gathers_ts", "ts"),
        Index("ix_gathers_user", "discord_id"),
        Index("ix_gathers_ranch", "ranch_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<GatherEvent id={self.id} user={self.discord_id} "
            f"{self.item_type}+{self.amount}>"
        )


# ---------------------------------------------------------------------------
# ReportSubscriber — weekly DM opt-in
# ---------------------------------------------------------------------------
class ReportSubscriber(Base):
    __tablename__ = "report_subscribers"

    discord_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<ReportSubscriber user={self.discord_id}>"


# ---------------------------------------------------------------------------
# Setting — key-value store
# ---------------------------------------------------------------------------
class Setting(Base):
    """Key-value store for state that must survive restarts.

    Holds the weekly report schedule and the date of the last scheduled
    report.  Values are stored as JSON strings.
    """
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_settings_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Setting key={self.key!r} category={self.category!r}>"


# ---------------------------------------------------------------------------
# AdminLog — append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"
