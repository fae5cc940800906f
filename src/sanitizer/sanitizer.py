"""Strips mention markup from message text before it is echoed or forwarded."""

from __future__ import annotations

import re

_MENTION_PATTERN = re.compile(r"\s*@\S+\s*")


def strip_mentions(text: str) -> str:
    """Replace every ``@name`` run (with its surrounding whitespace) by one space, then trim."""
    return _MENTION_PATTERN.sub(" ", text).strip()
