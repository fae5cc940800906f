"""Shared test fixtures for the LINE completion bridge."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import (
    BOT_USER_ID_KEY,
    CHANNEL_ACCESS_TOKEN_KEY,
    COMPLETION_API_KEY_KEY,
)
from src.messaging.client import MessagingClient
from src.models import InboundEvent

BOT_USER_ID = "U0123456789abcdef0123456789abcdef"

ALL_SECRETS = {
    BOT_USER_ID_KEY: BOT_USER_ID,
    CHANNEL_ACCESS_TOKEN_KEY: "channel-token",
    COMPLETION_API_KEY_KEY: "sk-ant-test",
}


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def mock_messaging() -> AsyncMock:
    messaging = AsyncMock(spec=MessagingClient)
    messaging.reply.return_value = True
    messaging.push.return_value = True
    return messaging


# --- Factory functions for test data ---


def make_event_dict(
    text: str | None = "@bot hello",
    reply_token: str | None = "reply-token-1",
    mentionees: list[dict[str, Any]] | None = None,
    event_type: str = "message",
    message_type: str = "text",
    user_id: str = "Uuser",
) -> dict[str, Any]:
    """Factory for a raw LINE webhook event with sensible defaults."""
    message: dict[str, Any] = {"type": message_type, "id": "100001"}
    if text is not None:
        message["text"] = text
    if mentionees is not None:
        message["mention"] = {"mentionees": mentionees}
    event: dict[str, Any] = {
        "type": event_type,
        "message": message,
        "source": {"type": "group", "userId": user_id, "groupId": "Cgroup"},
        "timestamp": 1700000000000,
    }
    if reply_token is not None:
        event["replyToken"] = reply_token
    return event


def make_event(**kwargs: Any) -> InboundEvent:
    return InboundEvent.model_validate(make_event_dict(**kwargs))


def make_payload(*events: dict[str, Any], destination: str = "Ubotdest") -> dict[str, Any]:
    return {"destination": destination, "events": list(events)}
