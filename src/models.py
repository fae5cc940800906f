"""Shared Pydantic data models for the LINE completion bridge."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class EventKind(str, Enum):
    MESSAGE = "message"
    OTHER = "other"


class MessageKind(str, Enum):
    TEXT = "text"
    OTHER = "other"


class AuditEventType(str, Enum):
    WEBHOOK_RECEIVED = "webhook_received"
    PAYLOAD_REJECTED = "payload_rejected"
    CONFIG_MISSING = "config_missing"
    REPLY_SENT = "reply_sent"
    REPLY_FAILED = "reply_failed"
    PUSH_SENT = "push_sent"
    PUSH_FAILED = "push_failed"
    EVENT_FAILED = "event_failed"


# --- Inbound webhook models ---


class _Inbound(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Mentionee(_Inbound):
    index: int = 0
    length: int = 0
    user_id: str | None = Field(default=None, alias="userId")


class Mention(_Inbound):
    mentionees: list[Mentionee] = Field(default_factory=list)


class InboundMessage(_Inbound):
    type: str
    id: str = ""
    text: str | None = None
    mention: Mention | None = None


class EventSource(_Inbound):
    type: str = "user"
    user_id: str | None = Field(default=None, alias="userId")
    group_id: str | None = Field(default=None, alias="groupId")
    room_id: str | None = Field(default=None, alias="roomId")


class InboundEvent(_Inbound):
    type: str
    message: InboundMessage | None = None
    reply_token: str | None = Field(default=None, alias="replyToken")
    source: EventSource = Field(default_factory=EventSource)
    timestamp: int = 0

    @property
    def kind(self) -> EventKind:
        return EventKind.MESSAGE if self.type == "message" else EventKind.OTHER

    @property
    def message_kind(self) -> MessageKind:
        if self.message is not None and self.message.type == "text":
            return MessageKind.TEXT
        return MessageKind.OTHER

    @property
    def text(self) -> str | None:
        return self.message.text if self.message else None

    @property
    def mentioned_user_ids(self) -> list[str]:
        """User IDs from the platform's structural mention metadata."""
        if self.message is None or self.message.mention is None:
            return []
        return [m.user_id for m in self.message.mention.mentionees if m.user_id]

    @property
    def source_user_id(self) -> str | None:
        return self.source.user_id


class InboundRequest(_Inbound):
    """Root of a webhook body. Events are kept raw and validated one by one."""

    destination: str = ""
    events: list[Any] = Field(default_factory=list)


# --- Outbound messaging models ---


class TextMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageMessage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["image"] = "image"
    original_content_url: str = Field(alias="originalContentUrl")
    preview_image_url: str = Field(alias="previewImageUrl")


OutboundMessage = TextMessage | ImageMessage


class ReplyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply_token: str = Field(alias="replyToken")
    messages: list[OutboundMessage] = Field(max_length=5)


class PushRequest(BaseModel):
    to: str
    messages: list[OutboundMessage] = Field(max_length=5)


# --- Completion API models ---


class CompletionMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: str


class CompletionRequest(BaseModel):
    model: str
    max_tokens: int = Field(gt=0)
    system: str
    messages: list[CompletionMessage]


class ContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    text: str = ""


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: list[ContentBlock] = Field(default_factory=list)


# --- Configuration ---


class Secrets(BaseModel):
    """Per-invocation view of the secret store. Missing values are None."""

    model_config = ConfigDict(frozen=True)

    bot_user_id: str | None = None
    channel_access_token: str | None = None
    completion_api_key: str | None = None


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    user_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "skipped"
    details: dict[str, object] | None = None
