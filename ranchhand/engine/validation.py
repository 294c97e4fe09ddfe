"""
ranchhand.engine.validation — Gather Validation
=================================================

Bounds and attribution checks applied to every parsed gather before it
may reach the ledger.  Attribution is mandatory: a gather with no
``<@mention>`` is never stored, since every report is per member.
"""

from __future__ import annotations

import enum

from ranchhand.constants import MAX_AMOUNT
from ranchhand.engine.events import ParsedGather

__all__ = ["RejectReason", "validate_gather"]


class RejectReason(enum.StrEnum):
    BAD_AMOUNT = "bad_amount"
    UNKNOWN_ACTOR = "unknown_actor"  # log line explicitly names "unknown"
    NO_MENTION = "no_mention"


def validate_gather(parsed: ParsedGather) -> RejectReason | None:
    """Return why *parsed* must be dropped, or ``None`` if it is acceptable."""
    if not parsed.amount or parsed.amount <= 0 or parsed.amount > MAX_AMOUNT:
        return RejectReason.BAD_AMOUNT

    if not parsed.discord_id:
        if parsed.actor_name and parsed.actor_name.strip().lower() == "unknown":
            return RejectReason.UNKNOWN_ACTOR
        return RejectReason.NO_MENTION

    return None
