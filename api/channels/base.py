"""
Abstract Channel Provider for the conversation bot.

Base class for chat transport integrations.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


@dataclass
class ChannelMessage:
    """Message to send via a channel."""
    to: str  # Chat id
    content: str
    reply_to_message_id: Optional[int] = None


@dataclass
class ChannelResponse:
    """Response from channel send operation."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BotIdentity:
    """The bot's own account on the channel."""
    id: int
    username: Optional[str] = None


# ── Inbound Models ────────────────────────────────────────────────

class InboundUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    username: Optional[str] = None


class InboundChat(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    type: Optional[str] = None


class InboundMessage(BaseModel):
    """Chat message as delivered by the transport (Bot API field names)."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    message_id: int
    chat: InboundChat
    from_user: Optional[InboundUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    reply_to_message: Optional["InboundMessage"] = None


InboundMessage.model_rebuild()


class ChannelProvider(ABC):
    """Abstract base class for chat channels."""

    @abstractmethod
    async def send_message(self, message: ChannelMessage) -> ChannelResponse:
        """Send a text message, optionally threaded to a prior message."""
        ...

    @abstractmethod
    async def get_me(self) -> BotIdentity:
        """Fetch the bot's own identity."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if channel is operational."""
        ...
