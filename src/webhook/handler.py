"""Webhook handler — turns one LINE webhook call into mention-gated replies.

Stages per call:
1. Resolve secrets and check the ones the enabled mode needs
2. Parse the body (missing or malformed bodies are acknowledged, never raised)
3. Short-circuit empty event lists (platform connectivity checks)
4. For each event, in order: mention check, mention stripping, echo or
   completion, splitting into a capped reply batch
5. Reply with the event's reply token

Events are isolated from each other: a failure in one is logged and the
remaining events are still processed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from pydantic import ValidationError

from src.audit.logger import AuditLogger
from src.completion.client import CompletionClient
from src.config import (
    BridgeSettings,
    SecretStore,
    missing_secrets,
    resolve_secrets,
)
from src.mention.detector import is_mentioned
from src.messaging.client import MessagingClient
from src.models import (
    AuditEventType,
    EventKind,
    InboundEvent,
    InboundRequest,
    MessageKind,
    OutboundMessage,
    Secrets,
    TextMessage,
)
from src.sanitizer.sanitizer import strip_mentions
from src.splitter.splitter import build_reply_batch, split_message
from src.webhook.models import WebhookResult

logger = logging.getLogger(__name__)

GREETING_TEXT = "どうしましたか？"

MessagingFactory = Callable[[str | None], MessagingClient]


class WebhookHandler:
    """Processes LINE webhook bodies. Holds no state between calls."""

    def __init__(
        self,
        settings: BridgeSettings,
        secret_store: SecretStore,
        completion_client: CompletionClient | None = None,
        messaging_factory: MessagingFactory | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._settings = settings
        self._secret_store = secret_store
        self._completion = completion_client or CompletionClient(
            url=settings.completion_url,
            model=settings.completion_model,
            max_tokens=settings.completion_max_tokens,
            system_prompt=settings.system_prompt,
            timeout=settings.http_timeout,
        )
        self._messaging_factory = messaging_factory or self._default_messaging
        self._audit = audit_logger

    def _default_messaging(self, access_token: str | None) -> MessagingClient:
        return MessagingClient(
            access_token,
            api_base=self._settings.line_api_base,
            timeout=self._settings.http_timeout,
        )

    async def handle(self, body: bytes | str | None) -> WebhookResult:
        """Process one webhook call and return the acknowledgment to send back."""
        secrets = resolve_secrets(self._secret_store)
        missing = missing_secrets(secrets, self._settings)
        if missing:
            logger.error("Required secrets are not set: %s", ", ".join(missing))
            self._record(
                AuditEventType.CONFIG_MISSING, "validate_config", "failure",
                details={"missing": missing},
            )
            return WebhookResult.success("Bot is not configured")

        if not body or not body.strip():
            logger.warning("Webhook called without a body")
            if self._settings.strict_payload:
                return WebhookResult.error("No post data", status_code=400)
            return WebhookResult.success("No post data")

        try:
            request = InboundRequest.model_validate(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            logger.error("Could not parse webhook body: %s", exc)
            self._record(
                AuditEventType.PAYLOAD_REJECTED, "parse", "failure",
                details={"error": type(exc).__name__},
            )
            status_code = 400 if self._settings.strict_payload else 200
            return WebhookResult.error(
                f"Invalid request body: {type(exc).__name__}", status_code,
            )

        if not request.events:
            logger.info("No events in request (destination=%s)", request.destination)
            return WebhookResult.success()

        self._record(
            AuditEventType.WEBHOOK_RECEIVED, "receive", "success",
            details={"destination": request.destination, "events": len(request.events)},
        )

        result = WebhookResult.success()
        messaging = self._messaging_factory(secrets.channel_access_token)
        for index, raw_event in enumerate(request.events):
            try:
                event = InboundEvent.model_validate(raw_event)
            except ValidationError as exc:
                logger.warning("Skipping malformed event #%d: %s", index, exc)
                result.events_skipped += 1
                continue

            try:
                replied = await self._process_event(event, secrets, messaging)
            except Exception as exc:
                logger.exception("Error processing event #%d", index)
                result.errors.append(f"event {index}: {exc}")
                self._record(
                    AuditEventType.EVENT_FAILED, "process_event", "failure",
                    user_id=event.source_user_id,
                    details={"index": index, "error": type(exc).__name__},
                )
                continue

            if replied:
                result.replies_sent += 1
            else:
                result.events_skipped += 1

        return result

    async def _process_event(
        self,
        event: InboundEvent,
        secrets: Secrets,
        messaging: MessagingClient,
    ) -> bool:
        text = event.text
        if (
            event.kind != EventKind.MESSAGE
            or event.message_kind != MessageKind.TEXT
            or not event.reply_token
            or not text
        ):
            logger.debug("Ignoring %s event", event.type)
            return False

        if not is_mentioned(event, secrets.bot_user_id or "", self._settings.mention_aliases):
            logger.info("Bot was not mentioned, ignoring message")
            return False

        messages = await self._compose_reply(strip_mentions(text), secrets)
        delivered = await messaging.reply(event.reply_token, messages)
        if self._audit:
            self._audit.log_delivery("reply", event.source_user_id, messages, delivered)
        return delivered

    async def _compose_reply(self, cleaned: str, secrets: Secrets) -> list[OutboundMessage]:
        if not cleaned:
            return [TextMessage(text=GREETING_TEXT)]

        if self._settings.completion_enabled:
            answer = await self._completion.complete(cleaned, secrets.completion_api_key)
        else:
            answer = cleaned
        chunks = split_message(answer, self._settings.max_message_length)
        return list(build_reply_batch(chunks))

    def _record(
        self,
        event_type: AuditEventType,
        action: str,
        result: str,
        user_id: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        if self._audit:
            self._audit.record(event_type, action, result, user_id=user_id, details=details)
