"""
ranchhand.engine.events — Parsed gather envelopes
===================================================

Every chat message that the extractor recognises becomes a
:class:`ParsedGather`.  Once it passes validation it is paired with its
Discord context (channel, message, timestamp) as a :class:`GatherCandidate`,
which is the sole input to the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

from ranchhand.database.models import ItemType

__all__ = ["ItemAmount", "ParsedGather", "GatherCandidate"]


@dataclass(frozen=True, slots=True)
class ItemAmount:
    """What was gathered or traded, without any attribution."""

    item_type: ItemType
    amount: int
    value: float = 0.0
    subtype: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedGather:
    """Result of running the extractor over one text blob."""

    item_type: ItemType
    amount: int
    value: float = 0.0
    subtype: str | None = None
    discord_id: str | None = None
    actor_name: str | None = None
    ranch_id: int | None = None


@dataclass(frozen=True, slots=True)
class GatherCandidate:
    """A validated gather ready to be appended to the ledger."""

    ts: int
    channel_id: str
    message_id: str
    discord_id: str | None
    ranch_id: int | None
    item_type: ItemType
    amount: int
    value: float = 0.0
    subtype: str | None = None

    @classmethod
    def from_parsed(
        cls,
        parsed: ParsedGather,
        *,
        ts: int,
        channel_id: str,
        message_id: str,
    ) -> GatherCandidate:
        return cls(
            ts=ts,
            channel_id=channel_id,
            message_id=message_id,
            discord_id=parsed.discord_id,
            ranch_id=parsed.ranch_id,
            item_type=parsed.item_type,
            amount=parsed.amount,
            value=parsed.value or 0.0,
            subtype=parsed.subtype,
        )
