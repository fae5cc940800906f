"""FastAPI application exposing the LINE webhook.

Every POST is answered with a JSON acknowledgment, even when the handler
fails, since the platform retries webhook deliveries it sees as failed.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from src.audit.logger import AuditLogger
from src.config import BridgeSettings, EnvSecretStore, SecretStore
from src.webhook.handler import WebhookHandler

logger = logging.getLogger(__name__)

HEALTH_TEXT = "LINE Bot is running!"


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads settings from environment variables."""
    settings = BridgeSettings.from_env()
    return create_app(
        settings, EnvSecretStore(), audit_logger=AuditLogger.from_settings(settings),
    )


def create_app(
    settings: BridgeSettings,
    secret_store: SecretStore,
    handler: WebhookHandler | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the webhook app around a handler built from ``settings``."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    webhook = handler or WebhookHandler(settings, secret_store, audit_logger=audit_logger)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/webhook", response_class=PlainTextResponse)
    async def webhook_health() -> str:
        return HEALTH_TEXT

    @app.post("/webhook")
    async def receive_webhook(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            result = await webhook.handle(body)
        except Exception as exc:
            logger.exception("Unhandled error while processing webhook")
            status_code = 500 if settings.strict_payload else 200
            return JSONResponse(
                {"status": "error", "message": str(exc)}, status_code=status_code,
            )
        return JSONResponse(result.body(), status_code=result.status_code)

    return app
