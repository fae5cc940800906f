"""Decides whether an inbound message is addressed to the bot."""

from __future__ import annotations

from collections.abc import Iterable

from src.config import DEFAULT_MENTION_ALIASES
from src.models import InboundEvent


def is_mentioned(
    event: InboundEvent,
    bot_user_id: str,
    aliases: Iterable[str] = DEFAULT_MENTION_ALIASES,
) -> bool:
    """Return True if the event mentions the bot.

    Structural mention metadata is authoritative when present: the bot is
    mentioned iff its exact user ID is among the mentionees. Without it,
    fall back to a case-insensitive search for any alias token in the text.
    """
    mentioned = event.mentioned_user_ids
    if mentioned:
        return bot_user_id in mentioned

    text = event.text
    if not text:
        return False
    lowered = text.lower()
    return any(alias.lower() in lowered for alias in aliases if alias)
