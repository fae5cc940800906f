"""LINE Messaging API client for reply and push messages.

Both operations make a single POST, never retry, and never raise. A missing
credential, a transport error, a token or URL httpx cannot encode, and a
non-2xx status are all logged and reported as ``False``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.models import OutboundMessage, PushRequest, ReplyRequest
from src.splitter.splitter import MAX_REPLY_MESSAGES

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot"


class MessagingClient:
    """Sends message batches to the chat platform with a channel access token."""

    def __init__(
        self,
        access_token: str | None,
        api_base: str = LINE_API_BASE,
        timeout: float = 30.0,
    ) -> None:
        self._access_token = access_token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    async def reply(self, reply_token: str, messages: list[OutboundMessage]) -> bool:
        """Reply to an inbound event using its single-use reply token."""
        payload = ReplyRequest(
            reply_token=reply_token, messages=_cap(messages),
        ).model_dump(by_alias=True, exclude_none=True)
        return await self._post("/message/reply", payload)

    async def push(self, user_id: str, messages: list[OutboundMessage]) -> bool:
        """Send messages to a user without a reply token."""
        payload = PushRequest(
            to=user_id, messages=_cap(messages),
        ).model_dump(by_alias=True, exclude_none=True)
        return await self._post("/message/push", payload)

    async def _post(self, path: str, payload: dict[str, Any]) -> bool:
        if not self._access_token:
            logger.error("Channel access token is not set; not calling %s", path)
            return False

        url = f"{self._api_base}{path}"
        headers = {"Authorization": f"Bearer {self._access_token}"}
        logger.debug(
            "POST %s (Authorization: Bearer ***) with %d message(s)",
            url, len(payload["messages"]),
        )

        try:
            async with httpx.AsyncClient(verify=True) as client:
                resp = await client.post(
                    url, json=payload, headers=headers, timeout=self._timeout,
                )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            logger.error("Error calling %s: %s", path, exc)
            return False

        if not 200 <= resp.status_code < 300:
            logger.error(
                "Messaging API %s returned %s: %s", path, resp.status_code, resp.text,
            )
            return False
        return True


def _cap(messages: list[OutboundMessage]) -> list[OutboundMessage]:
    if len(messages) > MAX_REPLY_MESSAGES:
        logger.warning(
            "Dropping %d message(s) over the platform limit of %d",
            len(messages) - MAX_REPLY_MESSAGES, MAX_REPLY_MESSAGES,
        )
        return list(messages[:MAX_REPLY_MESSAGES])
    return list(messages)
