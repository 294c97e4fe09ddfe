"""
ranchhand.bot.cogs.ranch — Ranch Slash Commands
=================================================

Reports:
- /totals [since]              — eggs and milk, all-time or a recent window
- /leaderboard [since] [limit] — one embed per member, ranked
- /weekly_totals               — summary + per-member embeds, last 7 days

Reports by DM:
- /subscribe_reports, /unsubscribe_reports

Managers only (Manage Server, or the configured admin role):
- /reset_week             — delete the last 7 days of gathers
- /set_report_schedule    — weekday / hour / minute of the weekly report
- /run_weekly_report_now  — run the weekly cycle immediately

- /get_report_schedule is open to everyone.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from ranchhand.constants import (
    CHECK_EMOJI,
    GENERIC_ERROR_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
)
from ranchhand.database.engine import run_db
from ranchhand.engine.clock import parse_since_to_ts, week_ago_ts
from ranchhand.services.admin_service import record_manual_report, reset_week
from ranchhand.services.delivery_service import send_embeds_in_batches
from ranchhand.services.embeds import (
    build_leaderboard_embeds,
    build_totals_message,
    build_weekly_totals_embeds,
)
from ranchhand.services.identity_service import discord_name_lookup, resolve_display_names
from ranchhand.services.report_service import (
    collect_weekly_snapshot,
    compose_actor_reports,
    compose_report,
)
from ranchhand.services.scheduler_service import (
    ScheduleConfig,
    ScheduleValidationError,
    get_schedule,
    set_schedule,
)
from ranchhand.services.stats_service import get_leaderboard, get_totals
from ranchhand.services.subscriber_service import subscribe, unsubscribe

if TYPE_CHECKING:
    from ranchhand.bot.core import RanchBot

logger = logging.getLogger(__name__)


def has_manager_access(interaction: discord.Interaction) -> bool:
    """Manage Server permission, or the configured admin role."""
    bot: RanchBot = interaction.client  # type: ignore[assignment]
    perms = interaction.permissions
    if perms is not None and perms.manage_guild:
        return True
    admin_role_id = bot.cfg.admin_role_id
    if admin_role_id is None or not hasattr(interaction.user, "roles"):
        return False
    return any(role.id == admin_role_id for role in interaction.user.roles)


def is_manager():
    """Decorator that restricts a command to ranch managers."""
    async def predicate(interaction: discord.Interaction) -> bool:
        return has_manager_access(interaction)
    return app_commands.check(predicate)


class Ranch(commands.Cog, name="Ranch"):
    """Ranch reports, report subscriptions, and weekly schedule management."""

    def __init__(self, bot: RanchBot) -> None:
        self.bot = bot

    def _lookup(self, interaction: discord.Interaction):
        return discord_name_lookup(self.bot, interaction.guild_id or self.bot.cfg.guild_id)

    def _schedule_text(self, schedule: ScheduleConfig) -> str:
        return (
            f"weekday={schedule.weekday} hour={schedule.hour} minute={schedule.minute} "
            f"({schedule.describe()}, {self.bot.cfg.timezone})"
        )

    # -------------------------------------------------------------------
    # /totals
    # -------------------------------------------------------------------
    @app_commands.command(name="totals", description="Show total eggs and milk.")
    @app_commands.describe(since="Time window like 24h or 7d (default: all-time)")
    async def totals(self, interaction: discord.Interaction, since: str | None = None) -> None:
        since_ts = parse_since_to_ts(since)
        totals = await run_db(get_totals, self.bot.engine, since_ts=since_ts)
        await interaction.response.send_message(
            build_totals_message(totals, since if since_ts is not None else None)
        )

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @app_commands.command(name="leaderboard", description="Top collectors by eggs + milk.")
    @app_commands.describe(
        since="Time window like 24h or 7d (default: all-time)",
        limit="How many members to show (1-200, default 50)",
    )
    async def leaderboard(
        self,
        interaction: discord.Interaction,
        since: str | None = None,
        limit: app_commands.Range[int, 1, 200] | None = None,
    ) -> None:
        since_ts = parse_since_to_ts(since)
        rows = await run_db(
            get_leaderboard, self.bot.engine, since_ts=since_ts, limit=limit,
        )
        if not rows:
            await interaction.response.send_message("No data yet.")
            return

        await interaction.response.defer(thinking=True)
        names = await resolve_display_names(
            [r.actor_id for r in rows], self._lookup(interaction),
        )
        actors = compose_actor_reports(rows, names, self.bot.cfg.price_per_item)
        embeds = build_leaderboard_embeds(actors, since if since_ts is not None else None)
        await send_embeds_in_batches(interaction, embeds)

    # -------------------------------------------------------------------
    # /weekly_totals
    # -------------------------------------------------------------------
    @app_commands.command(
        name="weekly_totals",
        description="Per-member totals for the last 7 days, with a summary.",
    )
    async def weekly_totals(self, interaction: discord.Interaction) -> None:
        snapshot = await run_db(collect_weekly_snapshot, self.bot.engine, week_ago_ts())
        if not snapshot.rows:
            await interaction.response.send_message("No data in the last 7 days.")
            return

        await interaction.response.defer(thinking=True)
        names = await resolve_display_names(
            [r.actor_id for r in snapshot.rows], self._lookup(interaction),
        )
        report = compose_report(snapshot, names, self.bot.cfg.price_per_item)
        await send_embeds_in_batches(interaction, build_weekly_totals_embeds(report))

    # -------------------------------------------------------------------
    # /reset_week
    # -------------------------------------------------------------------
    @app_commands.command(
        name="reset_week",
        description="Delete all gathers logged in the last 7 days.",
    )
    @is_manager()
    async def reset_week_cmd(self, interaction: discord.Interaction) -> None:
        deleted = await run_db(reset_week, self.bot.engine, interaction.user.id)
        await interaction.response.send_message(
            f"{CHECK_EMOJI} Weekly totals have been reset. Deleted {deleted} logged entries.",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /subscribe_reports, /unsubscribe_reports
    # -------------------------------------------------------------------
    @app_commands.command(
        name="subscribe_reports",
        description="Get the weekly report by DM.",
    )
    async def subscribe_reports(self, interaction: discord.Interaction) -> None:
        await run_db(subscribe, self.bot.engine, str(interaction.user.id))
        await interaction.response.send_message(
            f"{CHECK_EMOJI} You are now subscribed to weekly DM reports.",
            ephemeral=True,
        )

    @app_commands.command(
        name="unsubscribe_reports",
        description="Stop getting the weekly report by DM.",
    )
    async def unsubscribe_reports(self, interaction: discord.Interaction) -> None:
        await run_db(unsubscribe, self.bot.engine, str(interaction.user.id))
        await interaction.response.send_message(
            f"{CHECK_EMOJI} You have been unsubscribed from weekly DM reports.",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # Report schedule
    # -------------------------------------------------------------------
    @app_commands.command(
        name="set_report_schedule",
        description="Set when the weekly report runs.",
    )
    @app_commands.describe(
        weekday="0 = Sunday … 6 = Saturday",
        hour="Hour, 0-23",
        minute="Minute, 0-59",
    )
    @is_manager()
    async def set_report_schedule(
        self,
        interaction: discord.Interaction,
        weekday: int,
        hour: int,
        minute: int,
    ) -> None:
        schedule = ScheduleConfig(weekday, hour, minute)
        try:
            await run_db(
                set_schedule, self.bot.engine, schedule, actor_id=interaction.user.id,
            )
        except ScheduleValidationError:
            await interaction.response.send_message(
                "Invalid range. weekday 0-6, hour 0-23, minute 0-59.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"{CHECK_EMOJI} Report schedule updated: {self._schedule_text(schedule)}.",
            ephemeral=True,
        )

    @app_commands.command(
        name="get_report_schedule",
        description="Show when the weekly report runs.",
    )
    async def get_report_schedule(self, interaction: discord.Interaction) -> None:
        schedule = await run_db(
            get_schedule,
            self.bot.engine,
            ScheduleConfig.from_default(self.bot.cfg.default_schedule),
        )
        await interaction.response.send_message(
            f"Current report schedule: {self._schedule_text(schedule)}.",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /run_weekly_report_now
    # -------------------------------------------------------------------
    @app_commands.command(
        name="run_weekly_report_now",
        description="Send the weekly report now and reset the week.",
    )
    @is_manager()
    async def run_weekly_report_now(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message("Running weekly report now...", ephemeral=True)

        result = await self.bot.scheduler.run_now()
        await run_db(
            record_manual_report,
            self.bot.engine,
            interaction.user.id,
            delivered=result.delivered,
            failed=result.failed,
            deleted=result.deleted,
            skipped=result.skipped,
        )

        if result.skipped:
            summary = "No webhook configured and no subscribers; nothing was sent or reset."
        else:
            summary = (
                f"Delivered {result.delivered} ({result.failed} failed), "
                f"reset {result.deleted} logged entries."
            )
        await interaction.followup.send(
            f"{CHECK_EMOJI} Weekly report completed. {summary}", ephemeral=True,
        )

    # -------------------------------------------------------------------
    # Error handler
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            message = PERMISSION_DENIED_MESSAGE
        else:
            logger.exception(
                "Command /%s failed",
                interaction.command.name if interaction.command else "?",
                exc_info=error,
                extra={"user_id": interaction.user.id},
            )
            message = GENERIC_ERROR_MESSAGE

        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)


async def setup(bot: RanchBot) -> None:
    await bot.add_cog(Ranch(bot))
