"""Click CLI for operator tasks: push messages and check secret configuration."""

from __future__ import annotations

import asyncio
import json
import sys

import click

from src.audit.logger import AuditLogger
from src.config import (
    BOT_USER_ID_KEY,
    CHANNEL_ACCESS_TOKEN_KEY,
    COMPLETION_API_KEY_KEY,
    BridgeSettings,
    EnvSecretStore,
    JsonFileSecretStore,
    SecretStore,
    missing_secrets,
    resolve_secrets,
)
from src.messaging.client import MessagingClient
from src.splitter.splitter import build_reply_batch, split_message


@click.group()
@click.option(
    "--secrets-file", default=None,
    help="JSON file holding secrets. Defaults to environment variables.",
)
@click.option("--audit-log", default=None, help="Audit log file path. Defaults to AUDIT_LOG_PATH.")
@click.pass_context
def cli(ctx: click.Context, secrets_file: str | None, audit_log: str | None) -> None:
    """LINE completion bridge operator CLI."""
    ctx.ensure_object(dict)
    store: SecretStore = JsonFileSecretStore(secrets_file) if secrets_file else EnvSecretStore()
    ctx.obj["store"] = store
    settings = BridgeSettings.from_env()
    if audit_log:
        settings = settings.model_copy(update={"audit_log_path": audit_log})
    ctx.obj["settings"] = settings
    ctx.obj["audit"] = AuditLogger.from_settings(settings)


@cli.command()
@click.argument("user_id")
@click.argument("text")
@click.pass_context
def push(ctx: click.Context, user_id: str, text: str) -> None:
    """Push TEXT to USER_ID, split into platform-sized messages."""
    if not text.strip():
        raise click.BadParameter("TEXT must not be empty", param_hint="TEXT")
    settings: BridgeSettings = ctx.obj["settings"]
    secrets = resolve_secrets(ctx.obj["store"])
    client = MessagingClient(
        secrets.channel_access_token,
        api_base=settings.line_api_base,
        timeout=settings.http_timeout,
    )
    messages = build_reply_batch(split_message(text, settings.max_message_length))
    delivered = asyncio.run(client.push(user_id, list(messages)))

    audit: AuditLogger | None = ctx.obj["audit"]
    if audit:
        audit.log_delivery("push", user_id, messages, delivered)
        audit.close()

    if not delivered:
        click.echo(f"Push to {user_id} failed", err=True)
        sys.exit(1)
    click.echo(f"Pushed {len(messages)} message(s) to {user_id}")


@cli.command("check-secrets")
@click.pass_context
def check_secrets(ctx: click.Context) -> None:
    """Report which secrets are set, without printing their values."""
    settings: BridgeSettings = ctx.obj["settings"]
    secrets = resolve_secrets(ctx.obj["store"])
    report = {
        BOT_USER_ID_KEY: secrets.bot_user_id is not None,
        CHANNEL_ACCESS_TOKEN_KEY: secrets.channel_access_token is not None,
        COMPLETION_API_KEY_KEY: secrets.completion_api_key is not None,
    }
    click.echo(json.dumps({"mode": settings.mode.value, "secrets": report}, indent=2))
    missing = missing_secrets(secrets, settings)
    if missing:
        click.echo(f"Missing required secrets: {', '.join(missing)}", err=True)
        sys.exit(1)
