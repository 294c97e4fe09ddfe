"""
ranchhand.services.identity_service — Display-name resolution
===============================================================

Reports show server nicknames, not snowflakes.  Names are looked up
concurrently (bounded by a semaphore), each lookup has its own timeout,
and any failure degrades to the raw member id so one missing member
never breaks a report.  Results keep the input order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import discord

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_TIMEOUT_SECONDS = 5.0

NameLookup = Callable[[str], Awaitable[str | None]]


async def resolve_display_names(
    actor_ids: Sequence[str],
    lookup: NameLookup,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[str]:
    """Resolve every id with *lookup*; failures and blanks fall back to the id."""
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _resolve(actor_id: str) -> str:
        async with sem:
            try:
                name = await asyncio.wait_for(lookup(actor_id), timeout)
            except TimeoutError:
                logger.warning("Display-name lookup timed out for %s", actor_id)
                return actor_id
            except Exception:
                logger.warning("Display-name lookup failed for %s", actor_id, exc_info=True)
                return actor_id
        return name or actor_id

    return list(await asyncio.gather(*(_resolve(a) for a in actor_ids)))


def discord_name_lookup(client: discord.Client, guild_id: int | None) -> NameLookup:
    """Build a lookup that prefers the guild nickname, then the account name."""

    async def lookup(actor_id: str) -> str | None:
        uid = int(actor_id)
        guild = client.get_guild(guild_id) if guild_id else None
        if guild is not None:
            member = guild.get_member(uid)
            if member is None:
                try:
                    member = await guild.fetch_member(uid)
                except discord.HTTPException:
                    member = None
            if member is not None:
                return member.display_name

        user = client.get_user(uid)
        if user is None:
            try:
                user = await client.fetch_user(uid)
            except discord.HTTPException:
                return None
        return user.display_name

    return lookup
