"""
ranchhand.services.embeds — Report renderings
===============================================

All embed and message-text construction lives here so the cogs and the
weekly cycle only need to supply report data — no layout concerns.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import discord

from ranchhand.constants import (
    EGG_EMOJI,
    LEADERBOARD_ACTOR_COLOR,
    MILK_EMOJI,
    SUMMARY_COLOR,
    WEEKLY_ACTOR_COLOR,
    WEEKLY_TOTALS_ACTOR_COLOR,
    format_money,
)
from ranchhand.services.report_service import ActorReport, ReportOverview, WeeklyReport
from ranchhand.services.stats_service import ItemTotals

WEEKLY_SUMMARY_TITLE = "Weekly Summary — last 7 days"


def build_overview_embed(
    overview: ReportOverview,
    *,
    timestamp: datetime | None = None,
) -> discord.Embed:
    """The summary block that leads every weekly report."""
    embed = discord.Embed(
        title=WEEKLY_SUMMARY_TITLE,
        description=(
            f"{EGG_EMOJI} Eggs: **{overview.eggs}**  |  "
            f"{MILK_EMOJI} Milk: **{overview.milk}**  |  "
            f"Total Items: **{overview.total_items}**"
        ),
        color=SUMMARY_COLOR,
        timestamp=timestamp or datetime.now(UTC),
    )
    embed.add_field(name="Items Revenue", value=format_money(overview.item_revenue), inline=True)
    embed.add_field(name="Herd Net", value=format_money(overview.herd_net), inline=True)
    embed.add_field(name="Total Revenue", value=format_money(overview.total_revenue), inline=False)
    return embed


def build_actor_embed(
    actor: ActorReport,
    *,
    color: int,
    description_label: str,
    footer: str,
    timestamp: datetime | None = None,
) -> discord.Embed:
    """One member's block: ranked title, counts, herd net and total revenue."""
    stats = actor.stats
    embed = discord.Embed(
        title=f"{actor.rank}. {actor.display_name}",
        description=f"{description_label}: **{actor.total_items}**",
        color=color,
        timestamp=timestamp or datetime.now(UTC),
    )
    embed.add_field(name="Eggs", value=str(stats.eggs), inline=True)
    embed.add_field(name="Milk", value=str(stats.milk), inline=True)
    embed.add_field(name="Herd Bought", value=str(stats.herd_bought), inline=True)
    embed.add_field(name="Herd Sold", value=str(stats.herd_sold), inline=True)
    embed.add_field(name="Herd Net", value=format_money(actor.herd_net), inline=False)
    embed.add_field(name="Total Revenue", value=format_money(actor.total_revenue), inline=False)
    embed.set_footer(text=footer)
    return embed


def build_weekly_embeds(
    report: WeeklyReport,
    *,
    actor_color: int = WEEKLY_ACTOR_COLOR,
    description_label: str = "Items collected",
    footer: str = "Ranch report • last 7 days",
) -> list[discord.Embed]:
    """Overview embed followed by one embed per member, in rank order."""
    ts = report.generated_at
    embeds = [build_overview_embed(report.overview, timestamp=ts)]
    embeds.extend(
        build_actor_embed(
            actor,
            color=actor_color,
            description_label=description_label,
            footer=footer,
            timestamp=ts,
        )
        for actor in report.actors
    )
    return embeds


def build_weekly_totals_embeds(report: WeeklyReport) -> list[discord.Embed]:
    """The /weekly_totals variant of the weekly report."""
    return build_weekly_embeds(
        report,
        actor_color=WEEKLY_TOTALS_ACTOR_COLOR,
        description_label="Total collected",
        footer="Weekly totals — last 7 days",
    )


def build_leaderboard_embeds(
    actors: Sequence[ActorReport],
    since_label: str | None,
) -> list[discord.Embed]:
    """Per-member leaderboard embeds (no overview block)."""
    ts = datetime.now(UTC)
    return [
        build_actor_embed(
            actor,
            color=LEADERBOARD_ACTOR_COLOR,
            description_label="Collected Items",
            footer=f"Leaderboard — {since_label or 'all-time'}",
            timestamp=ts,
        )
        for actor in actors
    ]


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------
def build_totals_message(totals: ItemTotals, since_label: str | None) -> str:
    window = f"last {since_label}" if since_label else "all-time"
    return (
        f"**Totals (All ranches · {window})**\n"
        f"{EGG_EMOJI} Eggs: **{totals.eggs}**\n"
        f"{MILK_EMOJI} Milk: **{totals.milk}**"
    )


def build_report_text(report: WeeklyReport) -> str:
    """Plain-text weekly report for DMs."""
    ov = report.overview
    lines = [
        "Weekly Ranch Totals (last 7 days)",
        f"Eggs: {ov.eggs}",
        f"Milk: {ov.milk}",
        f"Total items: {ov.total_items}",
        f"Items Revenue: {format_money(ov.item_revenue)}",
        f"Herd Net: {format_money(ov.herd_net)}",
        f"Total Revenue: {format_money(ov.total_revenue)}",
        "",
        "Per-person:",
    ]
    if report.is_empty:
        lines.append("_No collectors found in the last 7 days._")
    for actor in report.actors:
        s = actor.stats
        lines.append(
            f"{actor.rank}. {actor.display_name} — Eggs: {s.eggs} | Milk: {s.milk} | "
            f"Items Rev: {format_money(actor.item_revenue)} | "
            f"Herd Bought: {s.herd_bought} | Herd Sold: {s.herd_sold} | "
            f"Herd Net: {format_money(actor.herd_net)} | "
            f"Total: {format_money(actor.total_revenue)}"
        )
    return "\n".join(lines) + "\n"
