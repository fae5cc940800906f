"""Outcome of one webhook invocation, rendered as the platform acknowledgment."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class WebhookResult:
    """Acknowledgment body and HTTP status to return to the platform."""

    status: str  # "success" or "error"
    status_code: int = 200
    message: str | None = None
    replies_sent: int = 0
    events_skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def body(self) -> dict[str, str]:
        payload = {"status": self.status}
        if self.message:
            payload["message"] = self.message
        return payload

    @classmethod
    def success(cls, message: str | None = None) -> WebhookResult:
        return cls(status="success", message=message)

    @classmethod
    def error(cls, message: str, status_code: int = 200) -> WebhookResult:
        return cls(status="error", status_code=status_code, message=message)
