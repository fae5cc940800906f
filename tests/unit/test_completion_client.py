"""Tests for the completion API client."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.completion.client import (
    API_VERSION,
    EMPTY_RESPONSE_TEXT,
    ERROR_RESPONSE_TEXT,
    NOT_CONFIGURED_TEXT,
    CompletionClient,
)


def _mock_async_client(mock_client_cls: Any) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


def _answer(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "msg_1",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
        },
    )


class TestCompletionRequest:
    def test_build_request_shape(self) -> None:
        client = CompletionClient(model="test-model", max_tokens=256, system_prompt="be nice")
        body = client.build_request("what time is it").model_dump()
        assert body == {
            "model": "test-model",
            "max_tokens": 256,
            "system": "be nice",
            "messages": [{"role": "user", "content": "what time is it"}],
        }

    @pytest.mark.asyncio
    async def test_sends_key_and_version_headers(self) -> None:
        client = CompletionClient(url="https://llm.test/v1/messages")
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.return_value = _answer("hi")

            await client.complete("hello", api_key="sk-test")

            mock_client.post.assert_called_once()
            args, kwargs = mock_client.post.call_args
            assert args[0] == "https://llm.test/v1/messages"
            assert kwargs["headers"]["x-api-key"] == "sk-test"
            assert kwargs["headers"]["anthropic-version"] == API_VERSION
            assert kwargs["json"]["messages"] == [{"role": "user", "content": "hello"}]


class TestCompletionResults:
    @pytest.mark.asyncio
    async def test_returns_first_content_block_text(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.return_value = _answer("東京は晴れです。")

            assert await client.complete("天気は？", api_key="sk-test") == "東京は晴れです。"

    @pytest.mark.asyncio
    async def test_empty_content_returns_fallback(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.return_value = httpx.Response(200, json={"content": []})

            assert await client.complete("q", api_key="sk-test") == EMPTY_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_non_2xx_returns_error_text(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.return_value = httpx.Response(
                529, json={"type": "error", "error": {"type": "overloaded_error"}},
            )

            assert await client.complete("q", api_key="sk-test") == ERROR_RESPONSE_TEXT
            assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_returns_error_text(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.side_effect = httpx.ConnectError("connection refused")

            assert await client.complete("q", api_key="sk-test") == ERROR_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_non_ascii_key_returns_error_text(self) -> None:
        # Real httpx client: the header fails to encode before any connection.
        client = CompletionClient(url="http://127.0.0.1:9/v1/messages")

        assert await client.complete("q", api_key="sk-ant\u3000") == ERROR_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_invalid_url_returns_error_text(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.side_effect = httpx.InvalidURL("Invalid port: 'x'")

            assert await client.complete("q", api_key="sk-test") == ERROR_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_unparseable_body_returns_error_text(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_async_client(mock_client_cls)
            mock_client.post.return_value = httpx.Response(200, content=b"<html>oops</html>")

            assert await client.complete("q", api_key="sk-test") == ERROR_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_missing_key_skips_call(self) -> None:
        client = CompletionClient()
        with patch("src.completion.client.httpx.AsyncClient") as mock_client_cls:
            assert await client.complete("q", api_key=None) == NOT_CONFIGURED_TEXT
            mock_client_cls.assert_not_called()

    def test_fallback_texts_are_distinct(self) -> None:
        assert len({EMPTY_RESPONSE_TEXT, ERROR_RESPONSE_TEXT, NOT_CONFIGURED_TEXT}) == 3
