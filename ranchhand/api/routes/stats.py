"""
ranchhand.api.routes.stats — Read-only ledger endpoints
=========================================================

Members are reported by Discord id; display names are only resolved in
the bot, which has a gateway connection.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from ranchhand.api.deps import get_config, get_engine
from ranchhand.config import RanchConfig
from ranchhand.engine.clock import parse_since_to_ts, week_ago_ts
from ranchhand.services.report_service import (
    ActorReport,
    collect_weekly_snapshot,
    compose_actor_reports,
    compose_report,
)
from ranchhand.services.scheduler_service import (
    ScheduleConfig,
    get_last_report_date,
    get_schedule,
)
from ranchhand.services.stats_service import get_leaderboard, get_totals

router = APIRouter(tags=["stats"])


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------
class TotalsOut(BaseModel):
    since: str | None
    since_ts: int | None
    ranch_id: int | None
    eggs: int
    milk: int
    total_items: int


class ActorOut(BaseModel):
    rank: int
    actor_id: str
    eggs: int
    milk: int
    total_items: int
    herd_bought: int
    herd_sold: int
    herd_net: float
    item_revenue: float
    total_revenue: float


class OverviewOut(BaseModel):
    eggs: int
    milk: int
    total_items: int
    item_revenue: float
    herd_net: float
    total_revenue: float


class WeeklyOut(BaseModel):
    since_ts: int
    price_per_item: float
    overview: OverviewOut
    actors: list[ActorOut]


class ScheduleOut(BaseModel):
    weekday: int
    hour: int
    minute: int
    description: str
    timezone: str
    last_report_date: str | None


def _actor_out(actor: ActorReport) -> ActorOut:
    s = actor.stats
    return ActorOut(
        rank=actor.rank,
        actor_id=actor.actor_id,
        eggs=s.eggs,
        milk=s.milk,
        total_items=actor.total_items,
        herd_bought=s.herd_bought,
        herd_sold=s.herd_sold,
        herd_net=actor.herd_net,
        item_revenue=actor.item_revenue,
        total_revenue=actor.total_revenue,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.get("/totals", response_model=TotalsOut)
def totals(
    since: str | None = Query(None, description="Window like 24h or 7d; omit for all-time"),
    ranch_id: int | None = None,
    engine: Engine = Depends(get_engine),
):
    since_ts = parse_since_to_ts(since)
    t = get_totals(engine, ranch_id=ranch_id, since_ts=since_ts)
    return TotalsOut(
        since=since if since_ts is not None else None,
        since_ts=since_ts,
        ranch_id=ranch_id,
        eggs=t.eggs,
        milk=t.milk,
        total_items=t.total_items,
    )


@router.get("/leaderboard", response_model=list[ActorOut])
def leaderboard(
    since: str | None = None,
    limit: int | None = Query(None, description="Clamped to 1-200; default 50"),
    ranch_id: int | None = None,
    engine: Engine = Depends(get_engine),
    cfg: RanchConfig = Depends(get_config),
):
    rows = get_leaderboard(
        engine, ranch_id=ranch_id, since_ts=parse_since_to_ts(since), limit=limit,
    )
    actors = compose_actor_reports(rows, [None] * len(rows), cfg.price_per_item)
    return [_actor_out(a) for a in actors]


@router.get("/weekly", response_model=WeeklyOut)
def weekly(
    engine: Engine = Depends(get_engine),
    cfg: RanchConfig = Depends(get_config),
):
    snapshot = collect_weekly_snapshot(engine, week_ago_ts())
    report = compose_report(snapshot, [None] * len(snapshot.rows), cfg.price_per_item)
    ov = report.overview
    return WeeklyOut(
        since_ts=report.since_ts,
        price_per_item=cfg.price_per_item,
        overview=OverviewOut(
            eggs=ov.eggs,
            milk=ov.milk,
            total_items=ov.total_items,
            item_revenue=ov.item_revenue,
            herd_net=ov.herd_net,
            total_revenue=ov.total_revenue,
        ),
        actors=[_actor_out(a) for a in report.actors],
    )


@router.get("/schedule", response_model=ScheduleOut)
def schedule(
    engine: Engine = Depends(get_engine),
    cfg: RanchConfig = Depends(get_config),
):
    current = get_schedule(engine, ScheduleConfig.from_default(cfg.default_schedule))
    return ScheduleOut(
        weekday=current.weekday,
        hour=current.hour,
        minute=current.minute,
        description=current.describe(),
        timezone=cfg.timezone,
        last_report_date=get_last_report_date(engine),
    )
