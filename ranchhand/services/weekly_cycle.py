"""
ranchhand.services.weekly_cycle — Aggregate → Compose → Deliver → Prune
=========================================================================

One weekly cycle over the trailing 7-day window:

1. Aggregate the window (worker thread via ``run_db``).
2. Resolve display names (bounded concurrent fan-out).
3. Compose the :class:`~ranchhand.services.report_service.WeeklyReport`.
4. Hand it to the configured sink (webhook or subscriber DMs).
5. Prune the window from the ledger, unless the sink had nobody to
   deliver to.

Exceptions propagate to the caller (the scheduler), which decides
whether the cycle counts as completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import Engine

from ranchhand.config import DEFAULT_PRICE_PER_ITEM
from ranchhand.database.engine import run_db
from ranchhand.engine.clock import week_ago_ts
from ranchhand.services.delivery_service import ReportSink
from ranchhand.services.identity_service import NameLookup, resolve_display_names
from ranchhand.services.ledger_service import delete_range
from ranchhand.services.report_service import collect_weekly_snapshot, compose_report

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CycleResult:
    delivered: int = 0
    failed: int = 0
    deleted: int = 0
    skipped: bool = False


class WeeklyCycle:
    """Callable that runs one full weekly report cycle."""

    def __init__(
        self,
        engine: Engine,
        sink: ReportSink,
        name_lookup: NameLookup,
        *,
        price_per_item: float = DEFAULT_PRICE_PER_ITEM,
    ) -> None:
        self.engine = engine
        self.sink = sink
        self.name_lookup = name_lookup
        self.price_per_item = price_per_item

    async def __call__(self, now: int | None = None) -> CycleResult:
        since_ts = week_ago_ts(now)

        snapshot = await run_db(collect_weekly_snapshot, self.engine, since_ts)
        names = await resolve_display_names(
            [row.actor_id for row in snapshot.rows], self.name_lookup,
        )
        report = compose_report(snapshot, names, self.price_per_item)

        delivery = await self.sink.deliver(report)
        if delivery.skipped:
            logger.info("Weekly report skipped: no destination. Ledger left intact.")
            return CycleResult(skipped=True)

        deleted = await run_db(delete_range, self.engine, since_ts)
        logger.info(
            "Weekly cycle done: %d actors, %d deliveries (%d failed), %d gathers pruned",
            len(report.actors), delivery.sent, delivery.failed, deleted,
        )
        return CycleResult(
            delivered=delivery.sent,
            failed=delivery.failed,
            deleted=deleted,
        )
