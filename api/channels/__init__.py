"""
Chat channel providers.
"""

from .base import BotIdentity, ChannelMessage, ChannelProvider, ChannelResponse, InboundMessage
from .telegram import TelegramAPIError, TelegramChannel, TelegramUpdate

__all__ = [
    "BotIdentity",
    "ChannelMessage",
    "ChannelProvider",
    "ChannelResponse",
    "InboundMessage",
    "TelegramAPIError",
    "TelegramChannel",
    "TelegramUpdate",
]
