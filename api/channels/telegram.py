"""
Telegram channel for the conversation bot.

Update model and a Bot API client built on httpx.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from .base import BotIdentity, ChannelMessage, ChannelProvider, ChannelResponse, InboundMessage

logger = logging.getLogger(__name__)


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    update_id: int
    message: Optional[InboundMessage] = None


class TelegramAPIError(Exception):
    """Raised when the Bot API rejects a call or is unreachable."""


# ── Client ────────────────────────────────────────────────────────

class TelegramChannel(ChannelProvider):
    """Telegram via the Bot HTTP API."""

    BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        token: str,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.timeout = timeout
        self._transport = transport

    async def _call(
        self,
        method: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self.BASE_URL}/bot{self.token}/{method}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(url, json=payload or {}, timeout=timeout or self.timeout)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise TelegramAPIError(f"{method} failed: {e}") from e

        if not data.get("ok"):
            raise TelegramAPIError(f"{method} rejected: {data.get('description')}")
        return data.get("result")

    async def send_message(self, message: ChannelMessage) -> ChannelResponse:
        payload: Dict[str, Any] = {"chat_id": message.to, "text": message.content}
        if message.reply_to_message_id is not None:
            payload["reply_to_message_id"] = message.reply_to_message_id
        try:
            result = await self._call("sendMessage", payload)
            return ChannelResponse(success=True, message_id=str(result.get("message_id")))
        except TelegramAPIError as e:
            logger.error(f"Telegram send failed: {e}")
            return ChannelResponse(success=False, error=str(e))

    async def get_me(self) -> BotIdentity:
        result = await self._call("getMe")
        return BotIdentity(id=result["id"], username=result.get("username"))

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[TelegramUpdate]:
        """Long-poll for new updates."""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload, timeout=timeout + self.timeout)
        return [TelegramUpdate.model_validate(item) for item in result or []]

    async def delete_webhook(self) -> None:
        """Polling and webhooks are mutually exclusive on the Bot API."""
        await self._call("deleteWebhook")

    async def health_check(self) -> bool:
        try:
            await self.get_me()
            return True
        except TelegramAPIError:
            return False
