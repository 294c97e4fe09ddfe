"""
ranchhand.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the non-secret settings: which channel to
listen on, the report timezone, the per-item price, and the default
weekly schedule.  Secrets (bot token, database URL, webhook URL) stay in
``.env`` and are read with ``os.getenv`` where they are needed.

Usage::

    from ranchhand.config import load_config

    cfg = load_config()           # reads ./config.yaml by default
    print(cfg.listen_channel_id)  # 1234567890123456789
    print(cfg.timezone)           # "America/Toronto"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_TIMEZONE = "America/Toronto"
DEFAULT_PRICE_PER_ITEM = 1.25
DEFAULT_DUPLICATE_WINDOW_SECONDS = 10

# Monday 09:00 (weekday 0 = Sunday)
DEFAULT_WEEKDAY = 1
DEFAULT_HOUR = 9
DEFAULT_MINUTE = 0


@dataclass(frozen=True, slots=True)
class DefaultSchedule:
    """Weekly slot used until an admin stores one with /set_report_schedule."""

    weekday: int = DEFAULT_WEEKDAY
    hour: int = DEFAULT_HOUR
    minute: int = DEFAULT_MINUTE


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RanchConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    ranch_name: str

    # Discord
    listen_channel_id: int  # The only channel whose messages are parsed
    guild_id: int           # Used to resolve member nicknames

    # Admin access (Manage Server always works; this role is an extra grant)
    admin_role_id: int | None = None

    # Reporting
    timezone: str = DEFAULT_TIMEZONE
    price_per_item: float = DEFAULT_PRICE_PER_ITEM
    duplicate_window_seconds: int = DEFAULT_DUPLICATE_WINDOW_SECONDS
    default_schedule: DefaultSchedule = field(default_factory=DefaultSchedule)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> RanchConfig:
    """Read *path* and return a :class:`RanchConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``timezone`` is not a known IANA zone name, or a
        ``default_schedule`` value is out of range.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> RanchConfig:
    """Build a :class:`RanchConfig` from an already-parsed mapping."""
    timezone = raw.get("timezone") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone in config: {timezone!r}") from exc

    sched_raw = raw.get("default_schedule") or {}
    schedule = DefaultSchedule(
        weekday=int(sched_raw.get("weekday", DEFAULT_WEEKDAY)),
        hour=int(sched_raw.get("hour", DEFAULT_HOUR)),
        minute=int(sched_raw.get("minute", DEFAULT_MINUTE)),
    )
    for name, value, high in (
        ("weekday", schedule.weekday, 6),
        ("hour", schedule.hour, 23),
        ("minute", schedule.minute, 59),
    ):
        if not 0 <= value <= high:
            raise ValueError(
                f"default_schedule.{name} must be 0-{high} in config, got {value}"
            )

    return RanchConfig(
        ranch_name=raw["ranch_name"],
        listen_channel_id=int(raw["listen_channel_id"]),
        guild_id=int(raw["guild_id"]),
        admin_role_id=(
            int(raw["admin_role_id"]) if raw.get("admin_role_id") else None
        ),
        timezone=timezone,
        price_per_item=float(raw.get("price_per_item", DEFAULT_PRICE_PER_ITEM)),
        duplicate_window_seconds=int(
            raw.get("duplicate_window_seconds", DEFAULT_DUPLICATE_WINDOW_SECONDS)
        ),
        default_schedule=schedule,
    )
