"""
ranchhand.bot.cogs.tasks — Periodic Background Tasks
=====================================================

- **Weekly report tick** — every minute, asks the scheduler whether the
  configured weekly slot has arrived and, if so, runs the report cycle.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

if TYPE_CHECKING:
    from ranchhand.bot.core import RanchBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background tasks."""

    def __init__(self, bot: RanchBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        self.report_loop.start()

    async def cog_unload(self) -> None:
        self.report_loop.cancel()

    @tasks.loop(minutes=1)
    async def report_loop(self):
        try:
            await self.bot.scheduler.tick()
        except Exception:
            logger.exception("Weekly report tick failed", extra={"task": "weekly_report"})

    @report_loop.before_loop
    async def _wait_report(self):
        await self.bot.wait_until_ready()


async def setup(bot: RanchBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))
