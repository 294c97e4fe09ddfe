"""
tests/test_ledger_service.py — Ledger & Ingest Pipeline Tests
===============================================================

Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

import pytest
from conftest import add_gather

from ranchhand.database.models import GatherEvent, ItemType
from ranchhand.engine.events import GatherCandidate
from ranchhand.engine.validation import RejectReason
from ranchhand.services.ledger_service import (
    DuplicateSourceMessage,
    IngestOutcome,
    append_gather,
    delete_range,
    find_recent_duplicate,
    query_gathers,
    record_gather,
)

USER = "123456789012345678"
T0 = 1_700_000_000_000


def _record(engine, text, message_id, *, now=T0, channel_id="555"):
    return record_gather(
        engine, text, channel_id=channel_id, message_id=message_id, now=now,
    )


class TestAppend:
    def test_append_returns_id(self, db_engine):
        cand = GatherCandidate(
            ts=T0, channel_id="1", message_id="m-1", discord_id=USER, ranch_id=4,
            item_type=ItemType.MILK, amount=3,
        )
        event_id = append_gather(db_engine, cand)
        rows = query_gathers(db_engine)
        assert [r.id for r in rows] == [event_id]
        assert rows[0].item_type == "milk"
        assert rows[0].ranch_id == 4

    def test_same_message_twice_raises(self, db_engine):
        cand = GatherCandidate(
            ts=T0, channel_id="1", message_id="m-1", discord_id=USER, ranch_id=None,
            item_type=ItemType.EGGS, amount=3,
        )
        append_gather(db_engine, cand)
        with pytest.raises(DuplicateSourceMessage) as exc_info:
            append_gather(db_engine, cand)
        assert exc_info.value.message_id == "m-1"


class TestDuplicateWindow:
    def test_identical_within_window_suppressed(self, db_engine):
        first = _record(db_engine, f"<@{USER}> collected 5 eggs", "a", now=T0)
        second = _record(db_engine, f"<@{USER}> collected 5 eggs", "b", now=T0 + 5_000)
        assert first.outcome is IngestOutcome.LOGGED
        assert second.outcome is IngestOutcome.DUPLICATE
        assert len(query_gathers(db_engine)) == 1

    def test_identical_after_window_accepted(self, db_engine):
        _record(db_engine, f"<@{USER}> collected 5 eggs", "a", now=T0)
        later = _record(db_engine, f"<@{USER}> collected 5 eggs", "b", now=T0 + 11_000)
        assert later.outcome is IngestOutcome.LOGGED
        assert len(query_gathers(db_engine)) == 2

    @pytest.mark.parametrize("text,channel", [
        (f"<@{USER}> collected 6 eggs", "555"),
        (f"<@{USER}> collected 5 milk", "555"),
        ("<@876543210987654321> collected 5 eggs", "555"),
        (f"<@{USER}> collected 5 eggs", "999"),
    ])
    def test_any_difference_is_not_a_duplicate(self, db_engine, text, channel):
        _record(db_engine, f"<@{USER}> collected 5 eggs", "a", now=T0)
        result = _record(db_engine, text, "b", now=T0 + 1_000, channel_id=channel)
        assert result.outcome is IngestOutcome.LOGGED

    def test_null_actor_matches_null_actor(self, db_engine):
        add_gather(db_engine, ts=T0, discord_id=None, amount=5)
        cand = GatherCandidate(
            ts=T0 + 1_000, channel_id="555", message_id="x", discord_id=None,
            ranch_id=None, item_type=ItemType.EGGS, amount=5,
        )
        assert find_recent_duplicate(db_engine, cand, 10_000)

    def test_null_actor_does_not_match_named_actor(self, db_engine):
        add_gather(db_engine, ts=T0, discord_id=USER, amount=5)
        cand = GatherCandidate(
            ts=T0 + 1_000, channel_id="555", message_id="x", discord_id=None,
            ranch_id=None, item_type=ItemType.EGGS, amount=5,
        )
        assert not find_recent_duplicate(db_engine, cand, 10_000)


class TestRecordGather:
    def test_logged(self, db_engine):
        result = _record(db_engine, f"<@{USER}> sold 4 Bison for 960.0$ ranch id 3", "a")
        assert result.outcome is IngestOutcome.LOGGED
        row = query_gathers(db_engine)[0]
        assert row.id == result.event_id
        assert row.item_type == ItemType.HERD_SELL.value
        assert (row.amount, row.value, row.subtype, row.ranch_id) == (4, 960.0, "bison", 3)
        assert row.ts == T0

    def test_oversized_ranch_number_is_not_a_ranch_id(self, db_engine):
        result = _record(db_engine, f"<@{USER}> collected 5 eggs ranch 99999999999", "a")
        assert result.outcome is IngestOutcome.LOGGED
        row = query_gathers(db_engine)[0]
        assert (row.amount, row.ranch_id) == (5, None)

    def test_no_match(self, db_engine):
        assert _record(db_engine, "good morning", "a").outcome is IngestOutcome.NO_MATCH

    def test_rejected_no_mention(self, db_engine):
        result = _record(db_engine, "[PlayerX] bought 5 Bison for $300", "a")
        assert result.outcome is IngestOutcome.REJECTED
        assert result.reason is RejectReason.NO_MENTION
        assert query_gathers(db_engine) == []

    def test_rejected_amount(self, db_engine):
        result = _record(db_engine, f"<@{USER}> collected 100001 eggs", "a")
        assert result.reason is RejectReason.BAD_AMOUNT

    def test_already_recorded(self, db_engine):
        _record(db_engine, f"<@{USER}> collected 5 eggs", "a", now=T0)
        # Same message re-processed after the duplicate window
        again = _record(db_engine, f"<@{USER}> collected 5 eggs", "a", now=T0 + 60_000)
        assert again.outcome is IngestOutcome.ALREADY_RECORDED
        assert len(query_gathers(db_engine)) == 1


class TestQueryAndDelete:
    def test_query_filters(self, db_engine):
        add_gather(db_engine, ts=T0, ranch_id=1, item_type=ItemType.EGGS)
        add_gather(db_engine, ts=T0 + 1, ranch_id=2, item_type=ItemType.MILK)
        add_gather(db_engine, ts=T0 + 2, ranch_id=2, discord_id="2" * 18)

        assert len(query_gathers(db_engine, ranch_id=2)) == 2
        assert len(query_gathers(db_engine, since_ts=T0 + 1)) == 2
        assert len(query_gathers(db_engine, item_type=ItemType.MILK)) == 1
        assert len(query_gathers(db_engine, discord_id="2" * 18)) == 1

    def test_delete_range(self, db_engine):
        add_gather(db_engine, ts=T0 - 1)
        add_gather(db_engine, ts=T0)
        add_gather(db_engine, ts=T0 + 1, ranch_id=9)

        assert delete_range(db_engine, T0, ranch_id=9) == 1
        assert delete_range(db_engine, T0) == 1
        remaining = query_gathers(db_engine)
        assert [r.ts for r in remaining] == [T0 - 1]

    def test_rows_are_detached(self, db_engine):
        add_gather(db_engine, ts=T0, amount=7)
        row = query_gathers(db_engine)[0]
        assert isinstance(row, GatherEvent)
        assert row.amount == 7
