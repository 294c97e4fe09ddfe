"""
ranchhand.services.admin_service — Audited Privileged Actions
===============================================================

Every privileged mutation follows the same pattern:
  1. Begin transaction
  2. Read "before" snapshot
  3. Apply change
  4. Write admin_log with before/after JSON
  5. Commit

Schedule changes are audited from
:func:`ranchhand.services.scheduler_service.set_schedule` through
:func:`log_admin_action`.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from ranchhand.database.models import AdminActionType, AdminLog, GatherEvent
from ranchhand.engine.clock import week_ago_ts
from ranchhand.services.ledger_service import delete_range_stmt

logger = logging.getLogger(__name__)


def log_admin_action(
    session: Session,
    *,
    actor_id: int,
    action_type: AdminActionType,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
    reason: str | None = None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor_id=actor_id,
        action_type=action_type.value,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
        reason=reason,
    ))


# ---------------------------------------------------------------------------
# Week reset
# ---------------------------------------------------------------------------

def reset_week(engine: Engine, actor_id: int, now: int | None = None) -> int:
    """Delete every gather from the last 7 days.  Returns the row count."""
    since_ts = week_ago_ts(now)
    with Session(engine) as session:
        before_count = session.scalar(
            select(func.count()).select_from(GatherEvent).where(GatherEvent.ts >= since_ts)
        ) or 0
        result = session.execute(delete_range_stmt(since_ts))
        deleted = result.rowcount or 0
        log_admin_action(
            session,
            actor_id=actor_id,
            action_type=AdminActionType.WEEK_RESET,
            target_table="gathers",
            target_id=None,
            before={"since_ts": since_ts, "rows": before_count},
            after={"since_ts": since_ts, "rows": before_count - deleted},
        )
        session.commit()

    logger.info("Week reset by %s: deleted %d gathers since ts=%d", actor_id, deleted, since_ts)
    return deleted


# ---------------------------------------------------------------------------
# Manual report
# ---------------------------------------------------------------------------

def record_manual_report(
    engine: Engine,
    actor_id: int,
    *,
    delivered: int,
    failed: int,
    deleted: int,
    skipped: bool,
) -> None:
    """Audit one /run_weekly_report_now invocation and what it did."""
    with Session(engine) as session:
        log_admin_action(
            session,
            actor_id=actor_id,
            action_type=AdminActionType.MANUAL_REPORT,
            target_table="gathers",
            target_id=None,
            before=None,
            after={
                "delivered": delivered,
                "failed": failed,
                "deleted": deleted,
                "skipped": skipped,
            },
        )
        session.commit()
