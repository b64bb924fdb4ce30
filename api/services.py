"""
Service initialization and dependency injection for the conversation bot.

Creates and manages the bot instance used by every entry point.
"""

import logging
from typing import Any, Optional

from config.settings import get_settings, Settings
from llm.orchestrator import BotConfigurationError, ConversationBot
from llm.prompt_templates import PromptTemplates, detect_json_result

from .channels.base import InboundMessage
from .channels.telegram import TelegramChannel

logger = logging.getLogger(__name__)


async def log_conversation_result(result: Any, message: InboundMessage, bot: ConversationBot) -> None:
    """Default result callback: record the concluded conversation."""
    sender = message.from_user.id if message.from_user else None
    logger.info(f"Conversation concluded for user {sender} in chat {message.chat.id}: {result}")


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.channel: Optional[TelegramChannel] = None
        self.bot: Optional[ConversationBot] = None
        self.result_callback = log_conversation_result
        self._initialized = False

    def initialize(self, settings: Optional[Settings] = None):
        """Initialize all services. Configuration errors propagate."""
        if self._initialized:
            return

        self.settings = settings or get_settings()
        s = self.settings
        logger.info(f"Initializing services with provider: {s.llm_provider}")

        if not s.telegram_bot_token:
            raise BotConfigurationError("Missing TELEGRAM_BOT_TOKEN")

        self.channel = TelegramChannel(token=s.telegram_bot_token)
        self.bot = ConversationBot.create(
            channel=self.channel,
            provider=s.llm_provider.lower(),
            system_prompt_fn=PromptTemplates.booking_system_prompt,
            end_of_conversation_fn=detect_json_result,
            allowed_chats=s.allowed_chats,
            command=s.bot_command,
            model_id=s.llm_model_id,
            openai_api_key=s.openai_api_key,
            aws_region=s.aws_region,
            table_name=s.table_name,
            history_ttl_minutes=s.history_ttl_minutes,
            max_tokens=s.max_tokens,
            temperature=s.temperature,
            default_response=s.default_response,
            reply_prefix=s.reply_prefix,
        )
        self._initialized = True
        history = "dynamodb" if s.table_name else "in-memory"
        logger.info(f"Conversation bot ready ({history} history)")

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.bot is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "channel": self.channel is not None,
            "bot": self.bot is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(settings: Optional[Settings] = None):
    """Initialize all services (called at startup)."""
    _services.initialize(settings)
