"""Delivery audit trail: one JSON object per line, rotated by size.

Records which replies and pushes were attempted and whether the platform
accepted them, plus webhook-level outcomes. Message bodies are never written,
only counts, message types and character totals. Rotation is delegated to
``logging.handlers.RotatingFileHandler``, so a log file belongs to one process.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

from src.config import BridgeSettings
from src.models import AuditEvent, AuditEventType, OutboundMessage, TextMessage

DeliveryKind = Literal["reply", "push"]

_DELIVERY_EVENTS: dict[tuple[str, bool], AuditEventType] = {
    ("reply", True): AuditEventType.REPLY_SENT,
    ("reply", False): AuditEventType.REPLY_FAILED,
    ("push", True): AuditEventType.PUSH_SENT,
    ("push", False): AuditEventType.PUSH_FAILED,
}


class AuditLogger:
    """Writes delivery and webhook outcomes to a JSON Lines file."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._handler = RotatingFileHandler(
            self.log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        self._handler.setFormatter(logging.Formatter("%(message)s"))

    @classmethod
    def from_settings(cls, settings: BridgeSettings) -> AuditLogger | None:
        """Build the trail configured in ``settings``, or None when it is off."""
        if not settings.audit_log_path:
            return None
        return cls(
            settings.audit_log_path,
            max_bytes=settings.audit_log_max_bytes,
            backup_count=settings.audit_log_backup_count,
        )

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        result: str,
        *,
        user_id: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        self.write(AuditEvent(
            event_type=event_type,
            user_id=user_id,
            action=action,
            result=result,
            details=details,
        ))

    def log_delivery(
        self,
        kind: DeliveryKind,
        user_id: str | None,
        messages: Sequence[OutboundMessage],
        delivered: bool,
    ) -> None:
        """Record one reply or push attempt without the message bodies."""
        self.record(
            _DELIVERY_EVENTS[(kind, delivered)],
            kind,
            "success" if delivered else "failure",
            user_id=user_id,
            details={
                "messages": len(messages),
                "types": [m.type for m in messages],
                "chars": sum(len(m.text) for m in messages if isinstance(m, TextMessage)),
            },
        )

    def write(self, event: AuditEvent) -> None:
        record = logging.makeLogRecord({
            "name": __name__,
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": event.model_dump_json(exclude_none=True),
        })
        self._handler.handle(record)

    def close(self) -> None:
        self._handler.close()
