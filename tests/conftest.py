"""Shared fixtures for conversation bot tests."""

import io
import json
import os
from types import SimpleNamespace
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

# Ensure we use test/mock settings
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test-token")
os.environ.setdefault("ALLOWED_CHAT_ID", "-100")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from api.channels.base import BotIdentity, ChannelResponse, InboundMessage
from llm.history_manager import HistoryManager
from llm.history_store import InMemoryHistoryStore
from llm.messages import Message, Role, Transcript
from llm.orchestrator import ConversationBot
from llm.prompt_service import PromptService
from llm.prompt_templates import detect_json_result

BOT_ID = 999
BOT_USERNAME = "nora_bot"
ALLOWED_CHAT = -100
COMMAND = "/nora"
HELP_TEXT = "Help message"


class ScriptedPromptService(PromptService):
    """Prompt service whose model replies are scripted; None simulates a failed call."""

    def __init__(self, replies: Optional[List[Optional[str]]] = None):
        super().__init__(system_prompt_fn=lambda name: f"Assist {name}", model_id="scripted")
        self.replies = list(replies or [])
        self.calls = []
        self.reset_ids = []

    async def make_prompt(self, conversation_id, user_input, transcript, display_name=None):
        self.calls.append((conversation_id, user_input, list(transcript), display_name))
        messages = list(transcript)
        if not messages:
            messages.append(self._system_message(display_name))
        messages.append(Message(role=Role.USER, content=user_input))
        reply = self.replies.pop(0) if self.replies else "ok"
        if reply is not None:
            messages.append(Message(role=Role.ASSISTANT, content=reply))
        return messages

    def reset_session(self, conversation_id):
        self.reset_ids.append(conversation_id)


def openai_reply(text: str):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=text))])


def bedrock_reply(text: str):
    body = json.dumps({"content": [{"type": "text", "text": text}]}).encode()
    return {"body": io.BytesIO(body)}


def request_texts(client) -> List[str]:
    """Text blocks of the last Bedrock request, in order."""
    body = json.loads(client.invoke_model.call_args.kwargs["body"])
    return [block["text"] for turn in body["messages"] for block in turn["content"]]


def make_message(
    text: Optional[str] = f"{COMMAND} hello",
    chat_id: int = ALLOWED_CHAT,
    user_id: Optional[int] = 42,
    username: Optional[str] = "alice",
    is_bot: bool = False,
    reply_to_bot: bool = False,
    message_id: int = 7,
) -> InboundMessage:
    data = {"message_id": message_id, "chat": {"id": chat_id, "type": "group"}}
    if user_id is not None:
        data["from"] = {"id": user_id, "is_bot": is_bot, "first_name": "Alice", "username": username}
    if text is not None:
        data["text"] = text
    if reply_to_bot:
        data["reply_to_message"] = {
            "message_id": message_id - 1,
            "chat": {"id": chat_id},
            "from": {"id": BOT_ID, "is_bot": True, "username": BOT_USERNAME},
            "text": "earlier reply",
        }
    return InboundMessage.model_validate(data)


@pytest.fixture
def channel():
    ch = AsyncMock()
    ch.get_me.return_value = BotIdentity(id=BOT_ID, username=BOT_USERNAME)
    ch.send_message.return_value = ChannelResponse(success=True, message_id="1")
    return ch


@pytest.fixture
def store():
    return InMemoryHistoryStore()


@pytest.fixture
def prompt_service():
    return ScriptedPromptService()


@pytest.fixture
def make_bot(channel, store):
    def _make(prompt_service: PromptService, end_of_conversation_fn=detect_json_result) -> ConversationBot:
        return ConversationBot(
            channel=channel,
            prompt_service=prompt_service,
            history_manager=HistoryManager(store),
            allowed_chats=[str(ALLOWED_CHAT)],
            command=COMMAND,
            end_of_conversation_fn=end_of_conversation_fn,
            default_response=HELP_TEXT,
            reply_prefix="> ",
        )
    return _make


@pytest.fixture
def bot(make_bot, prompt_service):
    return make_bot(prompt_service)


@pytest.fixture
def prior_transcript() -> Transcript:
    return [
        Message(role=Role.SYSTEM, content="Assist alice"),
        Message(role=Role.USER, content="book a table"),
        Message(role=Role.ASSISTANT, content="For when?"),
    ]
