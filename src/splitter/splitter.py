"""Splits long replies into chunks the messaging platform accepts."""

from __future__ import annotations

from src.models import TextMessage

MAX_MESSAGE_LENGTH = 5000
MAX_REPLY_MESSAGES = 5
SENTENCE_TERMINATORS = "。．！？.!?"
TRUNCATION_NOTICE = "（文字数制限のため、以降の内容は省略されました）"


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split ``text`` into chunks of at most ``max_length`` characters.

    Each cut is placed after the last sentence terminator inside the window,
    else after the last line break, else hard at ``max_length``. Joining the
    result always yields the original text.
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")

    chunks: list[str] = []
    rest = text
    while len(rest) > max_length:
        cut = _find_cut(rest[:max_length])
        chunks.append(rest[:cut])
        rest = rest[cut:]
    if rest or not chunks:
        chunks.append(rest)
    return chunks


def _find_cut(window: str) -> int:
    sentence_end = max(window.rfind(ch) for ch in SENTENCE_TERMINATORS)
    if sentence_end >= 0:
        return sentence_end + 1
    newline = window.rfind("\n")
    if newline >= 0:
        return newline + 1
    return len(window)


def build_reply_batch(
    chunks: list[str],
    max_messages: int = MAX_REPLY_MESSAGES,
    notice: str = TRUNCATION_NOTICE,
) -> list[TextMessage]:
    """Turn chunks into a message batch of at most ``max_messages`` entries.

    When there are too many chunks, the last slot carries ``notice`` so the
    reader knows content was dropped.
    """
    if len(chunks) <= max_messages:
        return [TextMessage(text=c) for c in chunks]
    kept = chunks[: max_messages - 1]
    return [TextMessage(text=c) for c in kept] + [TextMessage(text=notice)]
