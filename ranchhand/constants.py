"""
ranchhand.constants — Shared Constants & Helpers
==================================================

Single source of truth for limits and presentation constants.
Import from here instead of duplicating in cogs, services, and the API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Ledger limits
# ---------------------------------------------------------------------------
MAX_AMOUNT = 100_000

LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MAX_LIMIT = 200

WEEK_MS = 7 * 24 * 60 * 60 * 1000

# Discord accepts at most 10 embeds per message / webhook post
EMBED_BATCH_SIZE = 10


def clamp_limit(limit: int | None) -> int:
    """Clamp a leaderboard limit into ``[1, LEADERBOARD_MAX_LIMIT]``.

    ``None`` and ``0`` fall back to the default, matching an omitted option.
    """
    if not limit:
        limit = LEADERBOARD_DEFAULT_LIMIT
    return max(1, min(LEADERBOARD_MAX_LIMIT, int(limit)))


# ---------------------------------------------------------------------------
# Presentation (used by embeds, text reports, and command replies)
# ---------------------------------------------------------------------------
EGG_EMOJI = "\U0001f95a"   # 🥚
MILK_EMOJI = "\U0001f95b"  # 🥛
CHECK_EMOJI = "✅"     # ✅

SUMMARY_COLOR = 0x2ECC71
WEEKLY_ACTOR_COLOR = 0x3498DB
WEEKLY_TOTALS_ACTOR_COLOR = 0x1ABC9C
LEADERBOARD_ACTOR_COLOR = 0xE67E22

PERMISSION_DENIED_MESSAGE = (
    "You need the **Manage Server** permission to run this command."
)
GENERIC_ERROR_MESSAGE = "An error occurred while running that command."


def format_money(amount: float) -> str:
    """Render a currency amount the way every report shows it: ``$12.50``."""
    if amount < 0:
        return f"-${abs(amount):.2f}"
    return f"${amount:.2f}"
