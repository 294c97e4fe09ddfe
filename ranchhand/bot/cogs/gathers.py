"""
ranchhand.bot.cogs.gathers — Gather Log Listener
==================================================

Listens for on_message events in the configured log channel and feeds
each message through the ingest pipeline.

Pipeline:
1. on_message fires → gate checks (channel, own messages)
2. Build the text blob: message content, or the first embed's title,
   description and fields when the content is empty (webhook posts)
3. Call ledger_service.record_gather (runs on a background thread via run_db)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from ranchhand.database.engine import run_db
from ranchhand.services.ledger_service import IngestOutcome, IngestResult, record_gather

if TYPE_CHECKING:
    from ranchhand.bot.core import RanchBot

logger = logging.getLogger(__name__)


def message_text(message: discord.Message) -> str:
    """The text a gather is parsed from."""
    text = message.content or ""
    if text.strip() or not message.embeds:
        return text

    embed = message.embeds[0]
    fields = "".join(
        f" {field.name or ''} {field.value or ''}" for field in embed.fields
    )
    return f"{embed.title or ''} {embed.description or ''} {fields}".strip()


class Gathers(commands.Cog, name="Gathers"):
    """Records egg, milk and herd activity posted in the log channel."""

    def __init__(self, bot: RanchBot) -> None:
        self.bot = bot

    def _record(self, text: str, channel_id: int, message_id: int) -> IngestResult:
        """Sync wrapper for record_gather."""
        return record_gather(
            self.bot.engine,
            text,
            channel_id=str(channel_id),
            message_id=str(message_id),
            duplicate_window_seconds=self.bot.cfg.duplicate_window_seconds,
        )

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        try:
            await self._handle_message(message)
        except Exception:
            logger.exception(
                "Error processing message %s in channel %s",
                message.id,
                message.channel.id,
                extra={"event_type": "gather", "message_id": message.id},
            )

    async def _handle_message(self, message: discord.Message) -> IngestResult | None:
        """Inner message handler (separated for error isolation)."""
        if message.channel.id != self.bot.cfg.listen_channel_id:
            return None
        if self.bot.user is not None and message.author.id == self.bot.user.id:
            return None

        logger.debug(
            "Log message %s (webhook=%s, content=%d chars, embeds=%d)",
            message.id,
            message.webhook_id is not None,
            len(message.content or ""),
            len(message.embeds),
        )

        text = message_text(message)
        if not text:
            return None

        result = await run_db(self._record, text, message.channel.id, message.id)
        if result.outcome is IngestOutcome.REJECTED:
            logger.info("Skipped gather in message %s: %s", message.id, result.reason)
        return result


async def setup(bot: RanchBot) -> None:
    await bot.add_cog(Gathers(bot))
