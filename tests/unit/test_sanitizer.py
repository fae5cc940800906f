"""Tests for mention stripping."""

from __future__ import annotations

import re

import pytest

from src.sanitizer.sanitizer import strip_mentions


def test_strips_leading_mention() -> None:
    assert strip_mentions("@bot what is the weather") == "what is the weather"


def test_strips_mention_in_middle() -> None:
    assert strip_mentions("hello @bot how are you") == "hello how are you"


def test_strips_multiple_mentions() -> None:
    assert strip_mentions("@alice @bob  lunch?") == "lunch?"


def test_only_mention_yields_empty() -> None:
    assert strip_mentions("@bot") == ""


@pytest.mark.parametrize("text", ["", "   ", "\n\t "])
def test_blank_input_yields_empty(text: str) -> None:
    assert strip_mentions(text) == ""


def test_text_without_mentions_is_trimmed_only() -> None:
    assert strip_mentions("  plain question  ") == "plain question"


def test_lone_at_sign_is_kept() -> None:
    assert strip_mentions("meet @ noon") == "meet @ noon"


@pytest.mark.parametrize("text", [
    "@bot hi",
    "a @b c @d e",
    "x@ @y",
    "@@@ test",
    "メンション @ボット してね",
    "",
])
def test_idempotent(text: str) -> None:
    once = strip_mentions(text)
    assert strip_mentions(once) == once
    assert re.search(r"@\S", once) is None
