"""
ranchhand.engine.extractor — Gather Log Text Extractor
========================================================

Turns the loosely formatted lines that ranch scripts and players post into
the log channel into a :class:`~ranchhand.engine.events.ParsedGather`.

Examples of what shows up in the channel::

    <@123456789012345678> collected 5 eggs (ranch id 42)
    [PlayerX] bought 5 Bison for $300
    Ranch 7 | sold 4 Bison for 960.0$
    <@123456789012345678> Milk delivered: ranch 42, total 18

Matching is done by small independent matchers tried in a fixed priority
order.  Each one returns a result or ``None`` and never raises, so a
strange message can only ever fall through to "no match".

Priority matters: the adjacent ``<number> eggs|milk`` form is trusted
before herd trades, and both before the fallback that grabs the last
number in the text.  The fallback skips the ranch id so ``ranch 42 …
eggs`` is not logged as 42 eggs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from ranchhand.database.models import ItemType
from ranchhand.engine.events import ItemAmount, ParsedGather

logger = logging.getLogger(__name__)

__all__ = [
    "ITEM_MATCHERS",
    "extract_actor_name",
    "extract_discord_id",
    "extract_gather",
    "extract_item",
    "extract_ranch_id",
    "match_fallback_amount",
    "match_herd_trade",
    "match_item_amount",
    "normalize_whitespace",
]

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------
_MENTION_RE = re.compile(r"<@!?(\d{17,20})>")

_BRACKET_PREFIX_RE = re.compile(r"^\[([^\]]{1,64})\]")
_BRACKET_ANY_RE = re.compile(r"\[([^\]]{1,64})\]")
_PIPE_PREFIX_RE = re.compile(r"^([^|\n]{1,64})\s*\|")

# Ranch ids are stored in a 32-bit column; longer numbers are not ranch ids
_RANCH_ID_RE = re.compile(r"ranch\s*id\s*[:#]?\s*(\d{1,9})(?!\d)", re.IGNORECASE)
_RANCH_RE = re.compile(r"\branch\s*(\d{1,9})(?!\d)", re.IGNORECASE)

_ITEM_RE = re.compile(r"(\d+)\s*(eggs?|milk)\b", re.IGNORECASE)
_HERD_RE = re.compile(
    r"\b(bought|sold)\b\s+(\d+)\s+([A-Za-z]+)\s+for\s+\$?([\d,.]+)\$?",
    re.IGNORECASE,
)

_EGG_WORD_RE = re.compile(r"\beggs?\b", re.IGNORECASE)
_MILK_WORD_RE = re.compile(r"\bmilk\b", re.IGNORECASE)
_INT_RE = re.compile(r"\d+")
_WS_RE = re.compile(r"\s+")

_HERD_ACTIONS: dict[str, ItemType] = {
    "bought": ItemType.HERD_BUY,
    "sold": ItemType.HERD_SELL,
}


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines from embeds included) to one space."""
    return _WS_RE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# Context extractors
# ---------------------------------------------------------------------------
def extract_discord_id(text: str | None) -> str | None:
    """First ``<@id>`` / ``<@!id>`` mention, as the bare snowflake string."""
    if not text:
        return None
    m = _MENTION_RE.search(text)
    return m.group(1) if m else None


def extract_actor_name(text: str | None) -> str | None:
    """Name from a ``[Name]`` or ``Name |`` prefix, if the log line has one."""
    if not text:
        return None
    m = _BRACKET_PREFIX_RE.search(text) or _BRACKET_ANY_RE.search(text)
    if m:
        return m.group(1).strip()
    m = _PIPE_PREFIX_RE.search(text)
    if m:
        return m.group(1).strip()
    return None


def extract_ranch_id(text: str | None) -> int | None:
    """``ranch id 42`` / ``ranch id: 42`` / ``ranch 42`` → 42."""
    if not text:
        return None
    m = _RANCH_ID_RE.search(text) or _RANCH_RE.search(text)
    return int(m.group(1)) if m else None


# ---------------------------------------------------------------------------
# Item matchers — tried in order, first non-None wins
# ---------------------------------------------------------------------------
def match_item_amount(text: str, ranch_id: int | None = None) -> ItemAmount | None:
    """``5 eggs`` / ``12 Milk`` / ``1egg`` — the number directly before the item."""
    m = _ITEM_RE.search(text)
    if not m:
        return None
    word = m.group(2).lower()
    item_type = ItemType.MILK if word.startswith("milk") else ItemType.EGGS
    return ItemAmount(item_type=item_type, amount=int(m.group(1)))


def match_herd_trade(text: str, ranch_id: int | None = None) -> ItemAmount | None:
    """``bought 5 Bison for $300`` / ``sold 4 Bison for 960.0$``."""
    m = _HERD_RE.search(text)
    if not m:
        return None
    try:
        price = float(m.group(4).replace(",", ""))
    except ValueError:
        return None
    return ItemAmount(
        item_type=_HERD_ACTIONS[m.group(1).lower()],
        amount=int(m.group(2)),
        value=price,
        subtype=m.group(3).lower(),
    )


def match_fallback_amount(text: str, ranch_id: int | None = None) -> ItemAmount | None:
    """Eggs or milk are mentioned but not next to a number: take the last number.

    Numbers equal to the ranch id are ignored.
    """
    has_eggs = _EGG_WORD_RE.search(text) is not None
    has_milk = _MILK_WORD_RE.search(text) is not None
    if not has_eggs and not has_milk:
        return None

    numbers = [int(n) for n in _INT_RE.findall(text)]
    if ranch_id is not None:
        numbers = [n for n in numbers if n != ranch_id]
    if not numbers:
        return None

    item_type = ItemType.MILK if has_milk else ItemType.EGGS
    return ItemAmount(item_type=item_type, amount=numbers[-1])


ItemMatcher = Callable[[str, int | None], ItemAmount | None]

ITEM_MATCHERS: tuple[tuple[str, ItemMatcher], ...] = (
    ("item_amount", match_item_amount),
    ("herd_trade", match_herd_trade),
    ("fallback", match_fallback_amount),
)


def extract_item(text: str | None, ranch_id: int | None = None) -> ItemAmount | None:
    """Run :data:`ITEM_MATCHERS` in order over the normalized text."""
    if not text:
        return None
    normalized = normalize_whitespace(text)
    for name, matcher in ITEM_MATCHERS:
        item = matcher(normalized, ranch_id)
        if item is not None:
            logger.debug("Matched %s rule: %s", name, item)
            return item
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def extract_gather(text: str | None) -> ParsedGather | None:
    """Parse one text blob into a :class:`ParsedGather`, or ``None``.

    No bounds or attribution checks happen here; see
    :mod:`ranchhand.engine.validation`.
    """
    if not text or not text.strip():
        return None

    ranch_id = extract_ranch_id(text)
    item = extract_item(text, ranch_id)
    if item is None:
        return None

    return ParsedGather(
        item_type=item.item_type,
        amount=item.amount,
        value=item.value,
        subtype=item.subtype,
        discord_id=extract_discord_id(text),
        actor_name=extract_actor_name(text),
        ranch_id=ranch_id,
    )
