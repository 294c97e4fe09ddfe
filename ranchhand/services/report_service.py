"""
ranchhand.services.report_service — Report Composition
========================================================

Turns one aggregation pass over the ledger into a :class:`WeeklyReport`:
an overview plus one :class:`ActorReport` per member, with the derived
revenue figures every rendering shows::

    item_revenue  = (eggs + milk) × price_per_item
    herd_net      = herd_sell_revenue − herd_buy_cost
    total_revenue = item_revenue + herd_net

Rendering (embeds, DM text) lives in :mod:`ranchhand.services.embeds`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import Engine

from ranchhand.config import DEFAULT_PRICE_PER_ITEM
from ranchhand.database.models import ItemType
from ranchhand.services.stats_service import (
    ActorStats,
    ItemTotals,
    get_herd_total,
    get_totals,
    get_weekly_per_actor,
)

logger = logging.getLogger(__name__)


def item_revenue(total_items: int, price_per_item: float) -> float:
    return total_items * price_per_item


def herd_net(sell_revenue: float, buy_cost: float) -> float:
    return sell_revenue - buy_cost


# ---------------------------------------------------------------------------
# Report types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ReportOverview:
    eggs: int
    milk: int
    herd_buy_cost: float
    herd_sell_revenue: float
    price_per_item: float = DEFAULT_PRICE_PER_ITEM

    @property
    def total_items(self) -> int:
        return self.eggs + self.milk

    @property
    def item_revenue(self) -> float:
        return item_revenue(self.total_items, self.price_per_item)

    @property
    def herd_net(self) -> float:
        return herd_net(self.herd_sell_revenue, self.herd_buy_cost)

    @property
    def total_revenue(self) -> float:
        return self.item_revenue + self.herd_net


@dataclass(frozen=True, slots=True)
class ActorReport:
    rank: int
    display_name: str
    stats: ActorStats
    price_per_item: float = DEFAULT_PRICE_PER_ITEM

    @property
    def actor_id(self) -> str:
        return self.stats.actor_id

    @property
    def total_items(self) -> int:
        return self.stats.total_items

    @property
    def item_revenue(self) -> float:
        return item_revenue(self.total_items, self.price_per_item)

    @property
    def herd_net(self) -> float:
        return herd_net(self.stats.herd_sell_revenue, self.stats.herd_buy_cost)

    @property
    def total_revenue(self) -> float:
        return self.item_revenue + self.herd_net


@dataclass(frozen=True, slots=True)
class WeeklySnapshot:
    """Raw numbers from one aggregation pass over ``[since_ts, now)``."""

    since_ts: int
    totals: ItemTotals
    herd_buy_cost: float
    herd_sell_revenue: float
    rows: list[ActorStats] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class WeeklyReport:
    since_ts: int
    overview: ReportOverview
    actors: tuple[ActorReport, ...]
    generated_at: datetime

    @property
    def is_empty(self) -> bool:
        return not self.actors


# ---------------------------------------------------------------------------
# Aggregation (sync — call via run_db)
# ---------------------------------------------------------------------------
def collect_weekly_snapshot(engine: Engine, since_ts: int) -> WeeklySnapshot:
    """Run every query the weekly report needs for one window."""
    return WeeklySnapshot(
        since_ts=since_ts,
        totals=get_totals(engine, since_ts=since_ts),
        herd_buy_cost=get_herd_total(engine, since_ts, ItemType.HERD_BUY),
        herd_sell_revenue=get_herd_total(engine, since_ts, ItemType.HERD_SELL),
        rows=get_weekly_per_actor(engine, since_ts),
    )


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------
def compose_actor_reports(
    rows: Sequence[ActorStats],
    display_names: Sequence[str | None],
    price_per_item: float = DEFAULT_PRICE_PER_ITEM,
) -> tuple[ActorReport, ...]:
    """Pair ordered rows with resolved names; a missing name becomes the raw id."""
    if len(display_names) != len(rows):
        raise ValueError(
            f"Got {len(display_names)} display names for {len(rows)} rows"
        )
    return tuple(
        ActorReport(
            rank=i,
            display_name=name or row.actor_id,
            stats=row,
            price_per_item=price_per_item,
        )
        for i, (row, name) in enumerate(zip(rows, display_names), start=1)
    )


def compose_report(
    snapshot: WeeklySnapshot,
    display_names: Sequence[str | None],
    price_per_item: float = DEFAULT_PRICE_PER_ITEM,
    generated_at: datetime | None = None,
) -> WeeklyReport:
    overview = ReportOverview(
        eggs=snapshot.totals.eggs,
        milk=snapshot.totals.milk,
        herd_buy_cost=snapshot.herd_buy_cost,
        herd_sell_revenue=snapshot.herd_sell_revenue,
        price_per_item=price_per_item,
    )
    return WeeklyReport(
        since_ts=snapshot.since_ts,
        overview=overview,
        actors=compose_actor_reports(snapshot.rows, display_names, price_per_item),
        generated_at=generated_at or datetime.now(UTC),
    )
