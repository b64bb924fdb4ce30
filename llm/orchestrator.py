"""
Conversation Orchestrator for the conversation bot.

Turns inbound chat messages into multi-turn LLM conversations and detects
when a conversation has concluded with a structured result.
"""

import inspect
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from api.channels.base import BotIdentity, ChannelMessage, ChannelProvider, InboundMessage

from .history_manager import HistoryManager
from .history_store import HistoryStore, InMemoryHistoryStore
from .prompt_service import PromptService, SystemPromptFn

logger = logging.getLogger(__name__)

EndOfConversationFn = Callable[[str], Any]
ResultCallback = Callable[[Any, InboundMessage, "ConversationBot"], Optional[Awaitable[None]]]

HELP_PATTERN = re.compile(r"^/?(help|start)$", re.IGNORECASE)


class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    BEDROCK_CLAUDE = "bedrock"


class BotConfigurationError(ValueError):
    """Raised when the bot is built with missing or invalid configuration."""


class ProcessStatus(Enum):
    """How processing of one inbound message ended."""
    NO_RESULT = "no_result"
    HELP_SENT = "help_sent"
    CONTINUATION_SENT = "continuation_sent"
    CONVERSATION_RESULT = "conversation_result"


@dataclass
class ProcessResult:
    """Outcome of processing one inbound message."""
    status: ProcessStatus
    payload: Any = None

    @property
    def has_result(self) -> bool:
        return self.status is ProcessStatus.CONVERSATION_RESULT


@dataclass
class MessageInfo:
    """Parsed view of one inbound message."""
    message_id: int
    chat_id: int
    user_id: Optional[int]
    username: str
    mention: str
    text: str
    is_bot: bool
    is_allowed_chat: bool
    is_text_message: bool
    is_addressed: bool

    @property
    def conversation_id(self) -> str:
        return str(self.user_id)


class ConversationBot:
    """
    Per-message state machine.

    received -> invalid (discarded)
             -> help (default response sent)
             -> conversing -> result | continuation | error

    Every state is terminal for the message being processed; continuity
    between messages is carried only by the persisted transcript.
    """

    def __init__(
        self,
        channel: ChannelProvider,
        prompt_service: PromptService,
        history_manager: HistoryManager,
        allowed_chats: List[str],
        command: str,
        end_of_conversation_fn: EndOfConversationFn,
        default_response: str = "",
        reply_prefix: str = "",
    ):
        """
        Initialize the bot.

        Args:
            channel: Transport used to reply and to look up the bot's own identity
            prompt_service: LLM backend
            history_manager: Transcript persistence
            allowed_chats: Chat ids the bot may answer in
            command: Addressing command, e.g. "/nora"
            end_of_conversation_fn: Returns a truthy result when a reply closes the conversation
            default_response: Help text
            reply_prefix: Prepended to continuation replies
        """
        if not allowed_chats:
            raise BotConfigurationError("Missing ALLOWED_CHAT_ID: at least one allowed chat is required")
        if not command:
            raise BotConfigurationError("Missing addressing command")

        self.channel = channel
        self.prompt_service = prompt_service
        self.history_manager = history_manager
        self.allowed_chats = [str(c) for c in allowed_chats]
        self.command = command
        self.end_of_conversation_fn = end_of_conversation_fn
        self.default_response = default_response or ""
        self.reply_prefix = reply_prefix or ""

        self._bot_identity: Optional[BotIdentity] = None
        self._command_pattern = re.compile(rf"^{re.escape(command)}(?:@(\w+))?(?=\s|$)")

    @classmethod
    def create(
        cls,
        channel: ChannelProvider,
        provider: Union[LLMProvider, str],
        system_prompt_fn: SystemPromptFn,
        end_of_conversation_fn: EndOfConversationFn,
        allowed_chats: List[str],
        command: str,
        model_id: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        aws_region: str = "us-east-1",
        table_name: Optional[str] = None,
        history_ttl_minutes: int = 5,
        max_tokens: int = 200,
        temperature: float = 0.0,
        default_response: str = "",
        reply_prefix: str = "",
        history_store: Optional[HistoryStore] = None,
    ) -> "ConversationBot":
        """Build a bot with the prompt service and history store selected by configuration."""
        try:
            provider = LLMProvider(provider)
        except ValueError:
            raise BotConfigurationError(f"Unknown LLM provider: {provider}")

        if provider == LLMProvider.OPENAI:
            if not openai_api_key:
                raise BotConfigurationError("Missing OPENAI_API_KEY for the openai provider")
            from .providers.openai_provider import OpenAIPromptService
            prompt_service: PromptService = OpenAIPromptService(
                system_prompt_fn=system_prompt_fn,
                api_key=openai_api_key,
                model_id=model_id or OpenAIPromptService.DEFAULT_MODEL,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        else:
            from .providers.bedrock import BedrockPromptService
            prompt_service = BedrockPromptService(
                system_prompt_fn=system_prompt_fn,
                model_id=model_id or BedrockPromptService.DEFAULT_MODEL,
                region=aws_region,
                max_tokens=max_tokens,
                temperature=temperature,
            )

        if history_store is None:
            if table_name:
                from .dynamodb_history_store import DynamoDBHistoryStore
                history_store = DynamoDBHistoryStore(
                    table_name=table_name,
                    ttl_minutes=history_ttl_minutes,
                    region=aws_region,
                )
            else:
                history_store = InMemoryHistoryStore()

        return cls(
            channel=channel,
            prompt_service=prompt_service,
            history_manager=HistoryManager(history_store),
            allowed_chats=allowed_chats,
            command=command,
            end_of_conversation_fn=end_of_conversation_fn,
            default_response=default_response,
            reply_prefix=reply_prefix,
        )

    async def get_bot_identity(self) -> Optional[BotIdentity]:
        """Return the bot's own identity, fetched once and then cached."""
        if self._bot_identity is not None:
            return self._bot_identity
        try:
            self._bot_identity = await self.channel.get_me()
        except Exception as e:
            logger.error(f"Bot identity lookup failed: {e}")
            return None
        return self._bot_identity

    async def get_message_info(self, message: InboundMessage) -> MessageInfo:
        """Classify an inbound message."""
        bot = await self.get_bot_identity()
        sender = message.from_user

        raw_text = message.text
        is_text_message = raw_text is not None
        text = (raw_text or "").strip()

        has_command = False
        match = self._command_pattern.match(text)
        if match:
            handle = match.group(1)
            has_command = handle is None or bot is None or (
                bot.username is not None and handle.lower() == bot.username.lower()
            )
            if has_command:
                text = text[match.end():].strip()

        reply_to = message.reply_to_message
        is_reply_to_bot = bool(
            bot
            and reply_to is not None
            and reply_to.from_user is not None
            and reply_to.from_user.id == bot.id
        )

        username = ""
        if sender:
            username = sender.username or sender.first_name or ""

        return MessageInfo(
            message_id=message.message_id,
            chat_id=message.chat.id,
            user_id=sender.id if sender else None,
            username=username,
            mention=("@" if username else "") + username,
            text=text,
            is_bot=bool(sender and sender.is_bot),
            is_allowed_chat=str(message.chat.id) in self.allowed_chats,
            is_text_message=is_text_message,
            is_addressed=is_text_message and (is_reply_to_bot or has_command),
        )

    async def get_valid_message(self, message: Optional[InboundMessage]) -> Optional[MessageInfo]:
        """Classify and validate a message. Returns None if it must be discarded."""
        if message is None:
            return None

        info = await self.get_message_info(message)
        is_valid = (
            info.user_id is not None
            and bool((message.text or "").strip())
            and not info.is_bot
            and info.is_allowed_chat
            and info.is_addressed
        )
        if not is_valid:
            logger.warning(
                "Invalid message: "
                f"user_id={info.user_id} chat_id={info.chat_id} is_bot={info.is_bot} "
                f"is_allowed_chat={info.is_allowed_chat} is_addressed={info.is_addressed}"
            )
            return None
        return info

    def is_help_request(self, text: str) -> bool:
        if not text or HELP_PATTERN.match(text):
            return True
        if text == self.command:
            return True
        bot = self._bot_identity
        return bool(bot and bot.username and text == f"{self.command}@{bot.username}")

    async def respond(self, info: MessageInfo) -> ProcessResult:
        """Run one conversation turn for a validated message."""
        conversation_id = info.conversation_id

        history = await self.history_manager.get_history(conversation_id)
        new_history = await self.prompt_service.make_prompt(
            conversation_id,
            info.text,
            history,
            display_name=info.username,
        )
        reply = self.prompt_service.get_last_message(new_history)
        logger.info(f"LLM response for {conversation_id}: {reply}")

        if not reply:
            logger.warning(f"No assistant reply for {conversation_id}, dropping message")
            return ProcessResult(ProcessStatus.NO_RESULT)

        result = self.end_of_conversation_fn(reply)
        if result:
            # Closing turn is not persisted; drop any session that saw it.
            self.prompt_service.reset_session(conversation_id)
            return ProcessResult(ProcessStatus.CONVERSATION_RESULT, payload=result)

        response = await self.channel.send_message(ChannelMessage(
            to=str(info.chat_id),
            content=f"{self.reply_prefix}{reply}",
            reply_to_message_id=info.message_id,
        ))
        if not response.success:
            logger.error(f"Reply to {conversation_id} not delivered: {response.error}")
            self.prompt_service.reset_session(conversation_id)
            return ProcessResult(ProcessStatus.NO_RESULT)

        if not await self.history_manager.set_history(conversation_id, new_history):
            self.prompt_service.reset_session(conversation_id)
        return ProcessResult(ProcessStatus.CONTINUATION_SENT)

    async def process_message(
        self,
        message: Union[InboundMessage, dict, None],
        callback: Optional[ResultCallback] = None,
    ) -> ProcessResult:
        """
        Process one inbound message.

        Args:
            message: Telegram message (model or raw dict)
            callback: Invoked with (result, message, bot) when the conversation concludes

        Returns:
            ProcessResult; payload holds the conversation result, if any
        """
        logger.info(f"Message received: {message}")
        try:
            if isinstance(message, dict):
                message = InboundMessage.model_validate(message)
        except Exception as e:
            logger.warning(f"Malformed message discarded: {e}")
            return ProcessResult(ProcessStatus.NO_RESULT)

        info = await self.get_valid_message(message)
        if info is None:
            return ProcessResult(ProcessStatus.NO_RESULT)

        try:
            if self.is_help_request(info.text):
                await self.channel.send_message(ChannelMessage(
                    to=str(info.chat_id),
                    content=self.default_response,
                ))
                return ProcessResult(ProcessStatus.HELP_SENT)

            result = await self.respond(info)
            if result.has_result:
                logger.info(f"Conversation result for {info.conversation_id}: {result.payload}")
                if callback:
                    outcome = callback(result.payload, message, self)
                    if inspect.isawaitable(outcome):
                        await outcome
        except Exception as e:
            logger.error(f"Conversation error: {e}")
            return ProcessResult(ProcessStatus.NO_RESULT)

        logger.info(f"Message processed: {result.status.value}")
        return result

    async def reset_conversation(self, conversation_id: str) -> None:
        """Forget the stored transcript and any backend session for an identity."""
        await self.history_manager.clear_history(conversation_id)
        self.prompt_service.reset_session(conversation_id)
