"""
ranchhand.services.ledger_service — Gather Ledger & Ingest Pipeline
=====================================================================

The ledger is the ``gathers`` table: append-only, queried by time, ranch
and member, and pruned only by a bulk time-range delete (weekly reset).

Ingest pipeline for one chat message::

    text → extract_gather → validate_gather → find_recent_duplicate → append_gather

Two guards keep a message from being counted twice:

1. A duplicate window (default 10 s): an identical gather (same channel,
   item, amount and member) already logged inside the window is treated
   as a re-delivery and suppressed.  Two genuinely identical actions
   inside the window are lost — accepted.
2. The unique index on ``message_id``: re-processing the very same Discord
   message raises :class:`DuplicateSourceMessage`, reported as
   ``already_recorded``.

The duplicate check and the insert are two statements, not one atomic
step; two identical messages processed concurrently can both pass the
check.  Messages from one channel arrive sequentially, so this is left as is.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from sqlalchemy import Delete, Engine, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ranchhand.config import DEFAULT_DUPLICATE_WINDOW_SECONDS
from ranchhand.database.engine import get_session
from ranchhand.database.models import GatherEvent, ItemType
from ranchhand.engine.clock import now_ms
from ranchhand.engine.events import GatherCandidate, ParsedGather
from ranchhand.engine.extractor import extract_gather
from ranchhand.engine.validation import RejectReason, validate_gather

logger = logging.getLogger(__name__)


class DuplicateSourceMessage(Exception):
    """The ledger already holds a row for this Discord message id."""

    def __init__(self, message_id: str) -> None:
        super().__init__(f"gather already recorded for message {message_id}")
        self.message_id = message_id


class IngestOutcome(enum.StrEnum):
    LOGGED = "logged"
    NO_MATCH = "no_match"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"
    ALREADY_RECORDED = "already_recorded"


@dataclass(frozen=True, slots=True)
class IngestResult:
    outcome: IngestOutcome
    parsed: ParsedGather | None = None
    reason: RejectReason | None = None
    event_id: int | None = None


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def append_gather(engine: Engine, candidate: GatherCandidate) -> int:
    """Insert one ledger row and return its id.

    Raises
    ------
    DuplicateSourceMessage
        If a row for ``candidate.message_id`` already exists.
    """
    with Session(engine) as session:
        row = GatherEvent(
            ts=candidate.ts,
            channel_id=candidate.channel_id,
            message_id=candidate.message_id,
            discord_id=candidate.discord_id,
            ranch_id=candidate.ranch_id,
            item_type=candidate.item_type.value,
            amount=candidate.amount,
            value=candidate.value or 0.0,
            subtype=candidate.subtype,
        )
        session.add(row)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateSourceMessage(candidate.message_id) from exc
        return row.id


def delete_range_stmt(since_ts: int, ranch_id: int | None = None) -> Delete:
    """The DELETE behind :func:`delete_range`, for callers that own the session."""
    stmt = delete(GatherEvent).where(GatherEvent.ts >= since_ts)
    if ranch_id is not None:
        stmt = stmt.where(GatherEvent.ranch_id == ranch_id)
    return stmt


def delete_range(engine: Engine, since_ts: int, ranch_id: int | None = None) -> int:
    """Delete every gather with ``ts >= since_ts`` (optionally one ranch only).

    Returns the number of rows removed.  Rows appended while the delete
    runs may or may not survive it.
    """
    with get_session(engine) as session:
        result = session.execute(delete_range_stmt(since_ts, ranch_id))
        deleted = result.rowcount or 0

    logger.info(
        "Ledger prune: deleted %d gathers since ts=%d (ranch=%s)",
        deleted, since_ts, ranch_id if ranch_id is not None else "all",
    )
    return deleted


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def find_recent_duplicate(
    engine: Engine,
    candidate: GatherCandidate,
    window_ms: int,
) -> bool:
    """True if an equivalent gather was logged within ``window_ms`` of it."""
    stmt = (
        select(GatherEvent.id)
        .where(
            GatherEvent.channel_id == candidate.channel_id,
            GatherEvent.item_type == candidate.item_type.value,
            GatherEvent.amount == candidate.amount,
            GatherEvent.ts >= candidate.ts - window_ms,
        )
        .limit(1)
    )
    if candidate.discord_id is None:
        stmt = stmt.where(GatherEvent.discord_id.is_(None))
    else:
        stmt = stmt.where(GatherEvent.discord_id == candidate.discord_id)

    with Session(engine) as session:
        return session.scalar(stmt) is not None


def query_gathers(
    engine: Engine,
    *,
    since_ts: int | None = None,
    ranch_id: int | None = None,
    discord_id: str | None = None,
    item_type: ItemType | None = None,
) -> list[GatherEvent]:
    """Filtered ledger read, oldest first.  ``None`` filters are ignored."""
    stmt = select(GatherEvent).order_by(GatherEvent.ts, GatherEvent.id)
    if since_ts is not None:
        stmt = stmt.where(GatherEvent.ts >= since_ts)
    if ranch_id is not None:
        stmt = stmt.where(GatherEvent.ranch_id == ranch_id)
    if discord_id is not None:
        stmt = stmt.where(GatherEvent.discord_id == discord_id)
    if item_type is not None:
        stmt = stmt.where(GatherEvent.item_type == item_type.value)

    with Session(engine) as session:
        rows = session.scalars(stmt).all()
        for r in rows:
            session.expunge(r)
        return list(rows)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def record_gather(
    engine: Engine,
    text: str,
    *,
    channel_id: str,
    message_id: str,
    duplicate_window_seconds: int = DEFAULT_DUPLICATE_WINDOW_SECONDS,
    now: int | None = None,
) -> IngestResult:
    """Run one message through extract → validate → dedup → append."""
    parsed = extract_gather(text)
    if parsed is None:
        logger.debug("No gather found in message %s", message_id)
        return IngestResult(IngestOutcome.NO_MATCH)

    reason = validate_gather(parsed)
    if reason is not None:
        logger.debug("Gather in message %s rejected: %s", message_id, reason)
        return IngestResult(IngestOutcome.REJECTED, parsed=parsed, reason=reason)

    candidate = GatherCandidate.from_parsed(
        parsed,
        ts=now if now is not None else now_ms(),
        channel_id=channel_id,
        message_id=message_id,
    )

    if find_recent_duplicate(engine, candidate, duplicate_window_seconds * 1000):
        logger.info(
            "Duplicate gather skipped: %s +%d user=%s (message %s)",
            candidate.item_type, candidate.amount, candidate.discord_id, message_id,
        )
        return IngestResult(IngestOutcome.DUPLICATE, parsed=parsed)

    try:
        event_id = append_gather(engine, candidate)
    except DuplicateSourceMessage:
        logger.debug("Message %s already recorded", message_id)
        return IngestResult(IngestOutcome.ALREADY_RECORDED, parsed=parsed)

    logger.info(
        "Logged %s +%d value=%s user=%s ranch=%s",
        candidate.item_type,
        candidate.amount,
        candidate.value,
        candidate.discord_id,
        candidate.ranch_id if candidate.ranch_id is not None else "n/a",
    )
    return IngestResult(IngestOutcome.LOGGED, parsed=parsed, event_id=event_id)
