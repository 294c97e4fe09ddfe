"""
tests/test_admin_subscribers.py — Audited Admin Actions, Subscribers & Settings
=================================================================================
"""

from __future__ import annotations

from unittest.mock import patch

from conftest import add_gather, admin_log_rows, store_setting

from ranchhand.database.seed import REPORT_SCHEDULE_KEY, seed_default_settings
from ranchhand.services.admin_service import record_manual_report, reset_week
from ranchhand.services.ledger_service import delete_range_stmt, query_gathers
from ranchhand.services.settings_service import read_setting
from ranchhand.services.subscriber_service import list_subscribers, subscribe, unsubscribe

NOW = 1_800_000_000_000
DAY_MS = 24 * 3600 * 1000


class TestResetWeek:
    def test_deletes_last_seven_days_only(self, db_engine):
        add_gather(db_engine, ts=NOW - DAY_MS)
        add_gather(db_engine, ts=NOW - 7 * DAY_MS)      # boundary: included
        add_gather(db_engine, ts=NOW - 7 * DAY_MS - 1)  # just outside
        add_gather(db_engine, ts=NOW - 30 * DAY_MS)

        assert reset_week(db_engine, actor_id=7, now=NOW) == 2
        assert len(query_gathers(db_engine)) == 2

    def test_audited(self, db_engine):
        add_gather(db_engine, ts=NOW)
        reset_week(db_engine, actor_id=7, now=NOW)
        (entry,) = admin_log_rows(db_engine)
        assert entry.action_type == "WEEK_RESET"
        assert entry.actor_id == 7
        assert entry.before_snapshot["rows"] == 1
        assert entry.after_snapshot["rows"] == 0

    def test_empty_week(self, db_engine):
        assert reset_week(db_engine, actor_id=7, now=NOW) == 0

    def test_uses_ledger_delete_for_every_ranch(self, db_engine):
        add_gather(db_engine, ts=NOW, ranch_id=1)
        add_gather(db_engine, ts=NOW, ranch_id=2)
        add_gather(db_engine, ts=NOW, ranch_id=None)
        with patch(
            "ranchhand.services.admin_service.delete_range_stmt", wraps=delete_range_stmt,
        ) as stmt:
            assert reset_week(db_engine, actor_id=7, now=NOW) == 3
        stmt.assert_called_once_with(NOW - 7 * DAY_MS)
        assert query_gathers(db_engine) == []


class TestManualReportAudit:
    def test_records_outcome(self, db_engine):
        record_manual_report(db_engine, 9, delivered=2, failed=1, deleted=14, skipped=False)
        (entry,) = admin_log_rows(db_engine)
        assert entry.action_type == "MANUAL_REPORT"
        assert entry.after_snapshot == {
            "delivered": 2, "failed": 1, "deleted": 14, "skipped": False,
        }


class TestSubscribers:
    def test_subscribe_is_idempotent(self, db_engine):
        assert subscribe(db_engine, "1") is True
        assert subscribe(db_engine, "1") is False
        assert list_subscribers(db_engine) == ["1"]

    def test_unsubscribe(self, db_engine):
        subscribe(db_engine, "1")
        assert unsubscribe(db_engine, "1") is True
        assert unsubscribe(db_engine, "1") is False
        assert list_subscribers(db_engine) == []


class TestSettings:
    def test_seed_is_idempotent(self, db_engine):
        # db_engine already ran init_db
        assert seed_default_settings(db_engine) == 0
        assert read_setting(db_engine, REPORT_SCHEDULE_KEY) == {
            "weekday": 1, "hour": 9, "minute": 0,
        }

    def test_seed_keeps_stored_schedule(self, db_engine):
        store_setting(db_engine, REPORT_SCHEDULE_KEY, {"weekday": 2, "hour": 1, "minute": 0})
        seed_default_settings(db_engine)
        assert read_setting(db_engine, REPORT_SCHEDULE_KEY)["weekday"] == 2
