"""Client for the text-generation (Anthropic Messages) API.

Every failure degrades to a fixed apology string; nothing is raised to the
caller and nothing is retried.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from src.config import DEFAULT_SYSTEM_PROMPT
from src.models import CompletionMessage, CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

API_VERSION = "2023-06-01"

EMPTY_RESPONSE_TEXT = "申し訳ありません。回答を生成できませんでした。"
ERROR_RESPONSE_TEXT = "申し訳ありません。AIの応答中にエラーが発生しました。しばらくしてからもう一度お試しください。"
NOT_CONFIGURED_TEXT = "申し訳ありません。AI機能が設定されていません。管理者に連絡してください。"


class CompletionClient:
    """Single-turn completion requests with a fixed system instruction."""

    def __init__(
        self,
        url: str = "https://api.anthropic.com/v1/messages",
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 1024,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._model = model
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt
        self._timeout = timeout

    def build_request(self, query: str) -> CompletionRequest:
        return CompletionRequest(
            model=self._model,
            max_tokens=self._max_tokens,
            system=self._system_prompt,
            messages=[CompletionMessage(role="user", content=query)],
        )

    async def complete(self, query: str, api_key: str | None) -> str:
        """Return the model's answer to ``query``, or a fallback apology."""
        if not api_key:
            logger.error("Completion API key is not configured; skipping request")
            return NOT_CONFIGURED_TEXT

        headers = {
            "x-api-key": api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }
        body = self.build_request(query).model_dump()

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    self._url, json=body, headers=headers, timeout=self._timeout,
                )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            logger.error("Completion request failed: %s", exc)
            return ERROR_RESPONSE_TEXT

        if not 200 <= resp.status_code < 300:
            logger.error(
                "Completion API returned %s: %s", resp.status_code, resp.text[:500],
            )
            return ERROR_RESPONSE_TEXT

        try:
            parsed = CompletionResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            logger.error("Could not parse completion response: %s", exc)
            return ERROR_RESPONSE_TEXT

        if not parsed.content or not parsed.content[0].text:
            logger.warning("Completion response contained no text content")
            return EMPTY_RESPONSE_TEXT
        return parsed.content[0].text
