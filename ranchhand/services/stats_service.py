"""
ranchhand.services.stats_service — Ledger Aggregation
=======================================================

Totals and per-member rollups over arbitrary windows of the ``gathers``
ledger.  Every filter argument is optional; ``None`` means "don't filter".
Members are ranked by collected items (eggs + milk), ties broken by who
appeared in the ledger first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine, case, func, select
from sqlalchemy.orm import Session

from ranchhand.constants import clamp_limit
from ranchhand.database.models import GatherEvent, ItemType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ItemTotals:
    eggs: int = 0
    milk: int = 0

    @property
    def total_items(self) -> int:
        return self.eggs + self.milk


@dataclass(frozen=True, slots=True)
class ActorStats:
    """One member's rollup over a window."""

    actor_id: str
    eggs: int = 0
    milk: int = 0
    herd_bought: int = 0
    herd_sold: int = 0
    herd_buy_cost: float = 0.0
    herd_sell_revenue: float = 0.0

    @property
    def total_items(self) -> int:
        return self.eggs + self.milk


# ---------------------------------------------------------------------------
# Column expressions
# ---------------------------------------------------------------------------
def _sum_where(item_type: ItemType, column):
    return func.coalesce(
        func.sum(case((GatherEvent.item_type == item_type.value, column))), 0
    )


def _apply_filters(stmt, *, ranch_id: int | None, since_ts: int | None):
    if since_ts is not None:
        stmt = stmt.where(GatherEvent.ts >= since_ts)
    if ranch_id is not None:
        stmt = stmt.where(GatherEvent.ranch_id == ranch_id)
    return stmt


def _per_actor_stmt(*, ranch_id: int | None, since_ts: int | None):
    eggs = _sum_where(ItemType.EGGS, GatherEvent.amount)
    milk = _sum_where(ItemType.MILK, GatherEvent.amount)
    first_seen = func.min(GatherEvent.id)
    stmt = (
        select(
            GatherEvent.discord_id,
            eggs.label("eggs"),
            milk.label("milk"),
            _sum_where(ItemType.HERD_BUY, GatherEvent.amount).label("herd_bought"),
            _sum_where(ItemType.HERD_SELL, GatherEvent.amount).label("herd_sold"),
            _sum_where(ItemType.HERD_BUY, GatherEvent.value).label("herd_buy_cost"),
            _sum_where(ItemType.HERD_SELL, GatherEvent.value).label("herd_sell_revenue"),
        )
        .where(GatherEvent.discord_id.is_not(None))
        .group_by(GatherEvent.discord_id)
        .order_by((eggs + milk).desc(), first_seen.asc())
    )
    return _apply_filters(stmt, ranch_id=ranch_id, since_ts=since_ts)


def _row_to_stats(row) -> ActorStats:
    return ActorStats(
        actor_id=row.discord_id,
        eggs=int(row.eggs or 0),
        milk=int(row.milk or 0),
        herd_bought=int(row.herd_bought or 0),
        herd_sold=int(row.herd_sold or 0),
        herd_buy_cost=float(row.herd_buy_cost or 0),
        herd_sell_revenue=float(row.herd_sell_revenue or 0),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def get_totals(
    engine: Engine,
    ranch_id: int | None = None,
    since_ts: int | None = None,
) -> ItemTotals:
    """Sum of eggs and milk, optionally per ranch and/or since a timestamp."""
    stmt = select(
        _sum_where(ItemType.EGGS, GatherEvent.amount).label("eggs"),
        _sum_where(ItemType.MILK, GatherEvent.amount).label("milk"),
    )
    stmt = _apply_filters(stmt, ranch_id=ranch_id, since_ts=since_ts)
    with Session(engine) as session:
        row = session.execute(stmt).one()
    return ItemTotals(eggs=int(row.eggs or 0), milk=int(row.milk or 0))


def get_leaderboard(
    engine: Engine,
    ranch_id: int | None = None,
    since_ts: int | None = None,
    limit: int | None = None,
) -> list[ActorStats]:
    """Top members by eggs + milk.  *limit* is clamped to ``[1, 200]``."""
    stmt = _per_actor_stmt(ranch_id=ranch_id, since_ts=since_ts).limit(clamp_limit(limit))
    with Session(engine) as session:
        rows = session.execute(stmt).all()
    return [_row_to_stats(r) for r in rows]


def get_weekly_per_actor(engine: Engine, since_ts: int) -> list[ActorStats]:
    """Every member active since *since_ts*, all ranches, no limit."""
    stmt = _per_actor_stmt(ranch_id=None, since_ts=since_ts)
    with Session(engine) as session:
        rows = session.execute(stmt).all()
    return [_row_to_stats(r) for r in rows]


def get_herd_total(engine: Engine, since_ts: int | None, item_type: ItemType) -> float:
    """Sum of ``value`` for one herd item type (buy cost or sell revenue)."""
    if not item_type.is_herd:
        raise ValueError(f"{item_type} is not a herd item type")
    stmt = select(func.coalesce(func.sum(GatherEvent.value), 0)).where(
        GatherEvent.item_type == item_type.value
    )
    stmt = _apply_filters(stmt, ranch_id=None, since_ts=since_ts)
    with Session(engine) as session:
        return float(session.scalar(stmt) or 0)
