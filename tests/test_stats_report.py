"""
tests/test_stats_report.py — Aggregation, Report Composition & Rendering
==========================================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import add_gather

from ranchhand.constants import (
    LEADERBOARD_ACTOR_COLOR,
    SUMMARY_COLOR,
    WEEKLY_ACTOR_COLOR,
    WEEKLY_TOTALS_ACTOR_COLOR,
)
from ranchhand.database.models import ItemType
from ranchhand.services.embeds import (
    WEEKLY_SUMMARY_TITLE,
    build_leaderboard_embeds,
    build_report_text,
    build_totals_message,
    build_weekly_embeds,
    build_weekly_totals_embeds,
)
from ranchhand.services.report_service import (
    ActorReport,
    WeeklySnapshot,
    collect_weekly_snapshot,
    compose_actor_reports,
    compose_report,
)
from ranchhand.services.stats_service import (
    ActorStats,
    ItemTotals,
    get_herd_total,
    get_leaderboard,
    get_totals,
    get_weekly_per_actor,
)

ALICE = "100000000000000001"
BOB = "100000000000000002"
CARL = "100000000000000003"
T0 = 1_700_000_000_000


@pytest.fixture
def ledger(db_engine):
    """Alice: 10 eggs + 5 milk, bought 2 cows for 300, sold 1 for 500.
    Bob: 12 eggs (ranch 7).  Carl: 12 milk, logged after Bob.  One old row.
    """
    add_gather(db_engine, ts=T0, discord_id=ALICE, item_type=ItemType.EGGS, amount=10)
    add_gather(db_engine, ts=T0, discord_id=ALICE, item_type=ItemType.MILK, amount=5)
    add_gather(db_engine, ts=T0, discord_id=BOB, item_type=ItemType.EGGS, amount=12, ranch_id=7)
    add_gather(db_engine, ts=T0 + 1, discord_id=CARL, item_type=ItemType.MILK, amount=12)
    add_gather(
        db_engine, ts=T0 + 2, discord_id=ALICE, item_type=ItemType.HERD_BUY,
        amount=2, value=300.0, subtype="cow",
    )
    add_gather(
        db_engine, ts=T0 + 3, discord_id=ALICE, item_type=ItemType.HERD_SELL,
        amount=1, value=500.0, subtype="cow",
    )
    add_gather(db_engine, ts=T0 - 10_000, discord_id=CARL, item_type=ItemType.EGGS, amount=100)
    return db_engine


# ===========================================================================
# Aggregator
# ===========================================================================
class TestAggregator:
    def test_totals_all_time(self, ledger):
        assert get_totals(ledger) == ItemTotals(eggs=122, milk=17)

    def test_totals_filters(self, ledger):
        assert get_totals(ledger, since_ts=T0) == ItemTotals(eggs=22, milk=17)
        assert get_totals(ledger, ranch_id=7) == ItemTotals(eggs=12, milk=0)

    def test_totals_empty(self, db_engine):
        assert get_totals(db_engine) == ItemTotals(0, 0)

    def test_leaderboard_order_and_tie_break(self, ledger):
        rows = get_leaderboard(ledger, since_ts=T0)
        # Alice 15, then Bob and Carl tied on 12: Bob was seen first
        assert [r.actor_id for r in rows] == [ALICE, BOB, CARL]

    def test_leaderboard_limit_one(self, ledger):
        rows = get_leaderboard(ledger, limit=1)
        assert [r.actor_id for r in rows] == [CARL]  # 112 all-time

    def test_leaderboard_row_contents(self, ledger):
        alice = get_leaderboard(ledger, since_ts=T0)[0]
        assert alice == ActorStats(
            actor_id=ALICE, eggs=10, milk=5, herd_bought=2, herd_sold=1,
            herd_buy_cost=300.0, herd_sell_revenue=500.0,
        )

    def test_leaderboard_skips_unattributed(self, ledger):
        add_gather(ledger, ts=T0, discord_id=None, amount=1_000)
        assert all(r.actor_id for r in get_leaderboard(ledger))

    def test_weekly_per_actor_unlimited(self, db_engine):
        for i in range(60):
            add_gather(db_engine, ts=T0, discord_id=f"{i:018d}", amount=i + 1)
        rows = get_weekly_per_actor(db_engine, T0)
        assert len(rows) == 60
        assert rows[0].eggs == 60

    def test_herd_totals(self, ledger):
        assert get_herd_total(ledger, T0, ItemType.HERD_BUY) == 300.0
        assert get_herd_total(ledger, T0, ItemType.HERD_SELL) == 500.0
        assert get_herd_total(ledger, T0 + 3, ItemType.HERD_BUY) == 0.0

    def test_herd_total_rejects_items(self, ledger):
        with pytest.raises(ValueError):
            get_herd_total(ledger, T0, ItemType.EGGS)


# ===========================================================================
# Report composition
# ===========================================================================
class TestComposer:
    def test_derived_figures(self, ledger):
        snapshot = collect_weekly_snapshot(ledger, T0)
        report = compose_report(snapshot, ["Alice", "Bob", "Carl"], price_per_item=1.25)

        ov = report.overview
        assert ov.total_items == 39
        assert ov.item_revenue == pytest.approx(48.75)
        assert ov.herd_net == pytest.approx(200.0)
        assert ov.total_revenue == pytest.approx(248.75)

        alice = report.actors[0]
        assert (alice.rank, alice.display_name) == (1, "Alice")
        assert alice.item_revenue == pytest.approx(18.75)
        assert alice.herd_net == pytest.approx(200.0)
        assert alice.total_revenue == pytest.approx(218.75)
        assert [a.rank for a in report.actors] == [1, 2, 3]

    def test_missing_name_falls_back_to_id(self):
        rows = [ActorStats(actor_id=ALICE, eggs=1)]
        (actor,) = compose_actor_reports(rows, [None])
        assert actor.display_name == ALICE

    def test_name_count_mismatch(self):
        with pytest.raises(ValueError):
            compose_actor_reports([ActorStats(actor_id=ALICE)], [])

    def test_empty_report(self, db_engine):
        report = compose_report(collect_weekly_snapshot(db_engine, T0), [])
        assert report.is_empty
        assert report.overview.total_revenue == 0


# ===========================================================================
# Rendering
# ===========================================================================
def _report(n_actors: int = 2):
    rows = [
        ActorStats(actor_id=f"{i:018d}", eggs=10 - i, milk=1, herd_sold=1, herd_sell_revenue=50.0)
        for i in range(n_actors)
    ]
    snapshot = WeeklySnapshot(
        since_ts=T0,
        totals=ItemTotals(sum(r.eggs for r in rows), n_actors),
        herd_buy_cost=100.0,
        herd_sell_revenue=50.0 * n_actors,
        rows=rows,
    )
    names = [f"Hand {i}" for i in range(n_actors)]
    return compose_report(snapshot, names, generated_at=datetime(2026, 10, 19, tzinfo=UTC))


class TestRendering:
    def test_weekly_embeds(self):
        embeds = build_weekly_embeds(_report(2))
        assert len(embeds) == 3
        summary, first = embeds[0], embeds[1]
        assert summary.title == WEEKLY_SUMMARY_TITLE
        assert summary.color.value == SUMMARY_COLOR
        assert [f.name for f in summary.fields] == ["Items Revenue", "Herd Net", "Total Revenue"]
        assert first.title == "1. Hand 0"
        assert first.color.value == WEEKLY_ACTOR_COLOR
        assert [f.name for f in first.fields] == [
            "Eggs", "Milk", "Herd Bought", "Herd Sold", "Herd Net", "Total Revenue",
        ]
        assert first.fields[4].value == "$50.00"

    def test_weekly_totals_variant(self):
        embeds = build_weekly_totals_embeds(_report(1))
        assert embeds[1].color.value == WEEKLY_TOTALS_ACTOR_COLOR
        assert embeds[1].description.startswith("Total collected")

    def test_leaderboard_embeds(self):
        actors = [
            ActorReport(rank=1, display_name="Hand", stats=ActorStats(actor_id=ALICE, eggs=3)),
        ]
        (embed,) = build_leaderboard_embeds(actors, "7d")
        assert embed.color.value == LEADERBOARD_ACTOR_COLOR
        assert embed.footer.text.endswith("7d")
        (embed,) = build_leaderboard_embeds(actors, None)
        assert embed.footer.text.endswith("all-time")

    def test_totals_message(self):
        text = build_totals_message(ItemTotals(3, 4), None)
        assert "all-time" in text
        assert "**3**" in text and "**4**" in text
        assert "last 24h" in build_totals_message(ItemTotals(0, 0), "24h")

    def test_report_text(self):
        text = build_report_text(_report(2))
        assert text.startswith("Weekly Ranch Totals (last 7 days)")
        assert "1. Hand 0 — Eggs: 10" in text
        assert "Herd Net: $0.00" in text  # overview: 100 sold - 100 bought

    def test_report_text_empty(self):
        text = build_report_text(_report(0))
        assert "_No collectors found in the last 7 days._" in text
