"""
tests/test_clock_config.py — Time Helpers & Configuration Loading
===================================================================
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from ranchhand.config import DefaultSchedule, config_from_dict, load_config
from ranchhand.constants import WEEK_MS, clamp_limit, format_money
from ranchhand.engine.clock import parse_since_to_ts, read_local_clock, week_ago_ts

NOW = 1_700_000_000_000
TORONTO = ZoneInfo("America/Toronto")


class TestSince:
    @pytest.mark.parametrize("since,span", [
        ("24h", 24 * 3600 * 1000),
        ("7d", 7 * 24 * 3600 * 1000),
        (" 3 D ", 3 * 24 * 3600 * 1000),
    ])
    def test_parses(self, since, span):
        assert parse_since_to_ts(since, now=NOW) == NOW - span

    @pytest.mark.parametrize("since", [None, "", "week", "7w", "-1d", "1.5h"])
    def test_all_time(self, since):
        assert parse_since_to_ts(since, now=NOW) is None

    def test_week_ago(self):
        assert week_ago_ts(NOW) == NOW - WEEK_MS


class TestLocalClock:
    def test_sunday_is_zero(self):
        # 2026-10-18 is a Sunday; 14:00 UTC is 10:00 in Toronto (EDT)
        clock = read_local_clock(TORONTO, datetime(2026, 10, 18, 14, 0, tzinfo=UTC))
        assert (clock.weekday, clock.hour, clock.minute) == (0, 10, 0)
        assert clock.date_key == "2026-10-18"

    def test_date_rolls_back_across_midnight(self):
        # 02:30 UTC Monday is still Sunday evening in Toronto
        clock = read_local_clock(TORONTO, datetime(2026, 10, 19, 2, 30, tzinfo=UTC))
        assert clock.weekday == 0
        assert clock.date_key == "2026-10-18"

    def test_naive_treated_as_utc(self):
        aware = read_local_clock(TORONTO, datetime(2026, 10, 19, 13, 0, tzinfo=UTC))
        naive = read_local_clock(TORONTO, datetime(2026, 10, 19, 13, 0))
        assert aware == naive


class TestConstants:
    @pytest.mark.parametrize("limit,expected", [
        (None, 50), (0, 50), (1, 1), (75, 75), (200, 200), (500, 200), (-3, 1),
    ])
    def test_clamp_limit(self, limit, expected):
        assert clamp_limit(limit) == expected

    @pytest.mark.parametrize("amount,expected", [
        (0, "$0.00"), (12.5, "$12.50"), (-300, "-$300.00"), (1.255, "$1.25"),
    ])
    def test_format_money(self, amount, expected):
        assert format_money(amount) == expected


class TestConfig:
    _RAW = {"ranch_name": "Ranch", "listen_channel_id": "1", "guild_id": 2}

    def test_defaults(self):
        cfg = config_from_dict(dict(self._RAW))
        assert cfg.listen_channel_id == 1
        assert cfg.timezone == "America/Toronto"
        assert cfg.price_per_item == 1.25
        assert cfg.duplicate_window_seconds == 10
        assert cfg.default_schedule == DefaultSchedule(1, 9, 0)
        assert cfg.admin_role_id is None

    def test_overrides(self):
        cfg = config_from_dict({
            **self._RAW,
            "admin_role_id": 99,
            "timezone": "Europe/London",
            "price_per_item": 2,
            "default_schedule": {"weekday": 5, "hour": 18},
        })
        assert cfg.admin_role_id == 99
        assert cfg.tz == ZoneInfo("Europe/London")
        assert cfg.price_per_item == 2.0
        assert cfg.default_schedule == DefaultSchedule(5, 18, 0)

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            config_from_dict({"ranch_name": "Ranch"})

    def test_bad_timezone(self):
        with pytest.raises(ValueError):
            config_from_dict({**self._RAW, "timezone": "Mars/Olympus"})

    @pytest.mark.parametrize("schedule, field", [
        ({"weekday": 9, "hour": 30, "minute": 0}, "weekday"),
        ({"weekday": 1, "hour": 24}, "hour"),
        ({"minute": -1}, "minute"),
    ])
    def test_default_schedule_out_of_range(self, schedule, field):
        with pytest.raises(ValueError, match=f"default_schedule.{field}"):
            config_from_dict({**self._RAW, "default_schedule": schedule})

    def test_default_schedule_edges_accepted(self):
        cfg = config_from_dict({
            **self._RAW, "default_schedule": {"weekday": 6, "hour": 23, "minute": 59},
        })
        assert cfg.default_schedule == DefaultSchedule(6, 23, 59)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "ranch_name: Dusty Acres\nlisten_channel_id: 10\nguild_id: 20\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.ranch_name == "Dusty Acres"
        assert cfg.guild_id == 20
