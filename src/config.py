"""Runtime settings and secret store access."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from src.models import Secrets

logger = logging.getLogger(__name__)

BOT_USER_ID_KEY = "LINE_BOT_USER_ID"
CHANNEL_ACCESS_TOKEN_KEY = "LINE_CHANNEL_ACCESS_TOKEN"
COMPLETION_API_KEY_KEY = "ANTHROPIC_API_KEY"

DEFAULT_MENTION_ALIASES = ("@linebot", "@line-bot", "@bot", "@ボット")
DEFAULT_SYSTEM_PROMPT = (
    "あなたはLINEグループで質問に答えるアシスタントです。"
    "丁寧な日本語で、簡潔かつ正確に回答してください。"
    "わからないことは推測せず、わからないと伝えてください。"
    "個人情報や危険な行為を助長する内容には回答しないでください。"
)


class BridgeMode(str, Enum):
    ECHO = "echo"
    ASSISTANT = "assistant"


class BridgeSettings(BaseModel):
    """Non-secret settings, built once at process start."""

    model_config = ConfigDict(frozen=True)

    mode: BridgeMode = BridgeMode.ASSISTANT
    strict_payload: bool = False
    mention_aliases: tuple[str, ...] = DEFAULT_MENTION_ALIASES
    line_api_base: str = "https://api.line.me/v2/bot"
    completion_url: str = "https://api.anthropic.com/v1/messages"
    completion_model: str = "claude-sonnet-4-20250514"
    completion_max_tokens: int = Field(default=1024, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_message_length: int = Field(default=5000, gt=0)
    http_timeout: float = Field(default=30.0, gt=0)
    audit_log_path: str | None = None
    audit_log_max_bytes: int = Field(default=10_485_760, gt=0)
    audit_log_backup_count: int = Field(default=5, ge=1)

    @property
    def completion_enabled(self) -> bool:
        return self.mode == BridgeMode.ASSISTANT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeSettings:
        """Create settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if "BRIDGE_MODE" in env:
            values["mode"] = BridgeMode(env["BRIDGE_MODE"].strip().lower())
        if "BRIDGE_STRICT_PAYLOAD" in env:
            values["strict_payload"] = _parse_bool(env["BRIDGE_STRICT_PAYLOAD"])
        if env.get("BRIDGE_MENTION_ALIASES"):
            values["mention_aliases"] = tuple(
                a.strip() for a in env["BRIDGE_MENTION_ALIASES"].split(",") if a.strip()
            )
        optional = {
            "LINE_API_BASE": "line_api_base",
            "ANTHROPIC_API_URL": "completion_url",
            "ANTHROPIC_MODEL": "completion_model",
            "ANTHROPIC_MAX_TOKENS": "completion_max_tokens",
            "BRIDGE_SYSTEM_PROMPT": "system_prompt",
            "BRIDGE_MAX_MESSAGE_LENGTH": "max_message_length",
            "HTTP_TIMEOUT_SECONDS": "http_timeout",
            "AUDIT_LOG_PATH": "audit_log_path",
            "AUDIT_LOG_MAX_BYTES": "audit_log_max_bytes",
            "AUDIT_LOG_BACKUP_COUNT": "audit_log_backup_count",
        }
        for env_name, field_name in optional.items():
            if env.get(env_name):
                values[field_name] = env[env_name]
        return cls.model_validate(values)


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# --- Secret stores ---


class SecretStore(Protocol):
    def get(self, name: str) -> str | None: ...


class EnvSecretStore:
    """Reads secrets from the process environment at lookup time."""

    def get(self, name: str) -> str | None:
        return os.environ.get(name) or None


class JsonFileSecretStore:
    """Reads secrets from a flat JSON object, re-reading the file on every lookup."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    def get(self, name: str) -> str | None:
        if not self._path.exists():
            logger.warning("Secrets file not found: %s", self._path)
            return None
        try:
            data = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            logger.error("Secrets file %s is not valid JSON: %s", self._path, exc)
            return None
        if not isinstance(data, dict):
            logger.error("Secrets file %s must contain a JSON object", self._path)
            return None
        value = data.get(name)
        return str(value) if value else None


class StaticSecretStore:
    """In-memory secret store."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, name: str) -> str | None:
        return self._values.get(name) or None


def resolve_secrets(store: SecretStore) -> Secrets:
    """Snapshot the secrets needed for one webhook invocation."""
    return Secrets(
        bot_user_id=store.get(BOT_USER_ID_KEY),
        channel_access_token=store.get(CHANNEL_ACCESS_TOKEN_KEY),
        completion_api_key=store.get(COMPLETION_API_KEY_KEY),
    )


def missing_secrets(secrets: Secrets, settings: BridgeSettings) -> list[str]:
    """Names of secrets required by the enabled feature set that are absent."""
    missing: list[str] = []
    if not secrets.bot_user_id:
        missing.append(BOT_USER_ID_KEY)
    if not secrets.channel_access_token:
        missing.append(CHANNEL_ACCESS_TOKEN_KEY)
    if settings.completion_enabled and not secrets.completion_api_key:
        missing.append(COMPLETION_API_KEY_KEY)
    return missing
