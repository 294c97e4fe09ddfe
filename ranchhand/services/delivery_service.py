"""
ranchhand.services.delivery_service — Batched report delivery
===============================================================

Discord accepts at most 10 embeds per message or webhook post, so every
multi-embed reply is split into batches of :data:`EMBED_BATCH_SIZE`.
Each batch (and each DM recipient) is sent independently: a failure is
logged and counted in :class:`DeliveryResult`, never retried, and never
stops the remaining batches.

Weekly report sinks:

- :class:`WebhookSink` — posts embed batches to ``REPORT_WEBHOOK_URL``.
- :class:`SubscriberDMSink` — DMs the plain-text report to every member
  who ran /subscribe_reports.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeVar

import discord
import httpx
from discord.abc import Messageable

from ranchhand.constants import EMBED_BATCH_SIZE
from ranchhand.database.engine import run_db
from ranchhand.services.embeds import build_report_text, build_weekly_embeds
from ranchhand.services.subscriber_service import list_subscribers

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from ranchhand.services.report_service import WeeklyReport

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Discord's per-message content limit
MESSAGE_CHAR_LIMIT = 2000


@dataclass(slots=True)
class DeliveryResult:
    """How a delivery went.  ``skipped`` means there was nobody to send to."""

    sent: int = 0
    failed: int = 0
    skipped: bool = False


def chunk(items: Sequence[T], size: int = EMBED_BATCH_SIZE) -> list[list[T]]:
    """Split *items* into consecutive lists of at most *size*."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def split_message(text: str, limit: int = MESSAGE_CHAR_LIMIT) -> list[str]:
    """Split *text* on line boundaries into pieces no longer than *limit*."""
    pieces: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            pieces.append(current)
            current = ""
        current += line
    if current:
        pieces.append(current)
    return pieces


# ---------------------------------------------------------------------------
# Command replies
# ---------------------------------------------------------------------------
async def _send_batch(
    target: discord.Interaction | Messageable,
    batch: list[discord.Embed],
) -> None:
    if isinstance(target, discord.Interaction):
        if target.response.is_done():
            await target.followup.send(embeds=batch)
        else:
            await target.response.send_message(embeds=batch)
    else:
        await target.send(embeds=batch)


async def send_embeds_in_batches(
    target: discord.Interaction | Messageable,
    embeds: Sequence[discord.Embed],
) -> DeliveryResult:
    """Send *embeds* to an interaction (reply, then follow-ups) or a channel."""
    result = DeliveryResult()
    for batch in chunk(embeds):
        try:
            await _send_batch(target, batch)
            result.sent += 1
        except Exception:
            result.failed += 1
            logger.exception("Failed to send embed batch of %d", len(batch))
    return result


# ---------------------------------------------------------------------------
# Weekly report sinks
# ---------------------------------------------------------------------------
class ReportSink(Protocol):
    async def deliver(self, report: WeeklyReport) -> DeliveryResult: ...


class WebhookSink:
    """Post the weekly report as embed batches to a Discord webhook URL."""

    def __init__(
        self,
        url: str,
        *,
        username: str = "Ranch Report",
        pause_seconds: float = 0.2,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.username = username
        self.pause_seconds = pause_seconds
        self.timeout = timeout
        self._transport = transport

    async def deliver(self, report: WeeklyReport) -> DeliveryResult:
        embeds = [e.to_dict() for e in build_weekly_embeds(report)]
        result = DeliveryResult()
        batches = chunk(embeds)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for i, batch in enumerate(batches):
                try:
                    resp = await client.post(
                        self.url,
                        json={"username": self.username, "embeds": batch},
                    )
                    resp.raise_for_status()
                    result.sent += 1
                except httpx.HTTPError:
                    result.failed += 1
                    logger.exception("Webhook post failed (batch %d/%d)", i + 1, len(batches))
                if self.pause_seconds and i + 1 < len(batches):
                    await asyncio.sleep(self.pause_seconds)

        logger.info(
            "Weekly report posted to webhook: %d batches sent, %d failed",
            result.sent, result.failed,
        )
        return result


class SubscriberDMSink:
    """DM the plain-text weekly report to every subscriber."""

    def __init__(self, client: discord.Client, engine: Engine) -> None:
        self.client = client
        self.engine = engine

    async def _dm(self, subscriber_id: str, pieces: list[str]) -> None:
        uid = int(subscriber_id)
        user = self.client.get_user(uid) or await self.client.fetch_user(uid)
        for piece in pieces:
            await user.send(piece)

    async def deliver(self, report: WeeklyReport) -> DeliveryResult:
        subscribers = await run_db(list_subscribers, self.engine)
        if not subscribers:
            logger.info("Weekly report: no subscribers to DM and no webhook configured.")
            return DeliveryResult(skipped=True)

        pieces = split_message(build_report_text(report))
        result = DeliveryResult()
        for sid in subscribers:
            try:
                await self._dm(sid, pieces)
                result.sent += 1
                logger.info("Sent weekly DM to %s", sid)
            except Exception:
                result.failed += 1
                logger.exception("Failed to DM subscriber %s", sid)
        return result


def select_report_sink(
    client: discord.Client,
    engine: Engine,
    webhook_url: str | None,
) -> ReportSink:
    """Webhook when configured, subscriber DMs otherwise."""
    if webhook_url:
        return WebhookSink(webhook_url)
    return SubscriberDMSink(client, engine)
