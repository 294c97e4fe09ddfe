"""
ranchhand.services.subscriber_service — Weekly DM opt-in
==========================================================
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ranchhand.database.models import ReportSubscriber

logger = logging.getLogger(__name__)


def subscribe(engine: Engine, discord_id: str) -> bool:
    """Opt a member in.  Returns ``False`` if they were already subscribed."""
    with Session(engine) as session:
        if session.get(ReportSubscriber, discord_id) is not None:
            return False
        session.add(ReportSubscriber(discord_id=discord_id))
        try:
            session.commit()
        except IntegrityError:
            # Subscribed concurrently from another command
            session.rollback()
            return False
    logger.info("Member %s subscribed to weekly reports", discord_id)
    return True


def unsubscribe(engine: Engine, discord_id: str) -> bool:
    """Opt a member out.  Returns whether a row was removed."""
    with Session(engine) as session:
        row = session.get(ReportSubscriber, discord_id)
        if row is None:
            return False
        session.delete(row)
        session.commit()
    logger.info("Member %s unsubscribed from weekly reports", discord_id)
    return True


def list_subscribers(engine: Engine) -> list[str]:
    with Session(engine) as session:
        return list(session.scalars(
            select(ReportSubscriber.discord_id).order_by(
                ReportSubscriber.created_at, ReportSubscriber.discord_id,
            )
        ).all())
