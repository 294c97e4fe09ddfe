"""
ranchhand.bot.core — Bot Instance & Cog Loader
===============================================

Defines :class:`RanchBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), DB engine (``bot.engine``) and
   weekly report scheduler (``bot.scheduler``) so every Cog can reach them.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands
from sqlalchemy import Engine

from ranchhand.config import RanchConfig
from ranchhand.services.delivery_service import select_report_sink
from ranchhand.services.identity_service import discord_name_lookup
from ranchhand.services.scheduler_service import WeeklyReportScheduler
from ranchhand.services.weekly_cycle import WeeklyCycle

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "ranchhand.bot.cogs.gathers",
    "ranchhand.bot.cogs.ranch",
    "ranchhand.bot.cogs.tasks",
]


class RanchBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`RanchConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine` for the ledger database.
    webhook_url:
        ``REPORT_WEBHOOK_URL``; when unset the weekly report is DMed to
        subscribers instead.
    """

    def __init__(
        self,
        cfg: RanchConfig,
        engine: Engine,
        webhook_url: str | None = None,
    ) -> None:
        # MESSAGE_CONTENT is privileged: enable it in the Developer Portal.
        intents = discord.Intents.default()
        intents.message_content = True
        intents.presences = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            description=f"{cfg.ranch_name} gather log",
        )

        self.cfg = cfg
        self.engine = engine
        self.webhook_url = webhook_url

        cycle = WeeklyCycle(
            engine,
            select_report_sink(self, engine, webhook_url),
            discord_name_lookup(self, cfg.guild_id),
            price_per_item=cfg.price_per_item,
        )
        self.scheduler = WeeklyReportScheduler(
            engine, cycle, cfg.tz, cfg.default_schedule,
        )

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  One broken Cog is logged, not fatal."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        logger.info(
            "Listening for gathers in channel %s; reports via %s",
            self.cfg.listen_channel_id,
            "webhook" if self.webhook_url else "subscriber DMs",
        )

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        await super().close()
