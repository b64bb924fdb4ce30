"""
AWS Bedrock prompt service.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import boto3

from ..messages import Message, Role, Transcript
from ..prompt_service import PromptService, SystemPromptFn

logger = logging.getLogger(__name__)


class BedrockChatSession:
    """
    Long-lived chat with a Claude model on Bedrock.

    Holds the system prompt and the Claude-formatted history; a turn is
    only recorded once the model has replied.
    """

    def __init__(
        self,
        client: Any,
        model_id: str,
        system: Optional[str],
        history: List[Dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ):
        self._client = client
        self.model_id = model_id
        self.system = system
        self.history = history
        self.max_tokens = max_tokens
        self.temperature = temperature

    def send_message(self, text: str) -> str:
        """Send one user turn and return the model's reply text."""
        messages = merge_turns(self.history + [_claude_turn("user", text)])

        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": messages,
        }
        if self.system:
            body["system"] = self.system

        response = self._client.invoke_model(
            modelId=self.model_id,
            body=json.dumps(body),
            contentType="application/json",
            accept="application/json",
        )
        response_body = json.loads(response["body"].read())

        reply = ""
        if "content" in response_body and response_body["content"]:
            reply = response_body["content"][0]["text"].strip()

        if not reply:
            # Claude rejects empty text blocks; leave the history as it was.
            logger.warning("Empty response from Bedrock")
            return ""

        self.history = messages + [_claude_turn("assistant", reply)]
        return reply


def _claude_turn(role: str, text: str) -> Dict[str, Any]:
    return {"role": role, "content": [{"type": "text", "text": text}]}


def merge_turns(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Merge consecutive same-role turns; Claude requires strict alternation."""
    merged: List[Dict[str, Any]] = []
    for msg in messages:
        if merged and merged[-1]["role"] == msg["role"]:
            merged[-1] = {
                "role": msg["role"],
                "content": merged[-1]["content"] + msg["content"],
            }
        else:
            merged.append(msg)
    return merged


def to_claude_history(transcript: Transcript) -> List[Dict[str, Any]]:
    """Translate a transcript into Claude turns, dropping system entries."""
    turns = [
        _claude_turn("assistant" if m.role == Role.ASSISTANT else "user", m.content)
        for m in transcript
        if m.role != Role.SYSTEM
    ]
    return merge_turns(turns)


class BedrockPromptService(PromptService):
    """
    Claude-on-Bedrock prompt service.

    Keeps one chat session per conversation identity. A session is reused
    while its history matches the transcript the caller passes in and is
    rebuilt from that transcript otherwise, or when it is empty.
    """

    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        system_prompt_fn: SystemPromptFn,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        max_tokens: int = 200,
        temperature: float = 0.0,
        client: Optional[Any] = None,
    ):
        """
        Initialize Bedrock prompt service.

        Args:
            system_prompt_fn: Builds the system prompt from a display name
            model_id: Bedrock model ID
            region: AWS region
            max_tokens: Reply-length ceiling
            temperature: Generation temperature
            client: Preconfigured bedrock-runtime client
        """
        super().__init__(system_prompt_fn, model_id, max_tokens, temperature)
        self.region = region
        self._client = client or boto3.client("bedrock-runtime", region_name=region)
        self._sessions: Dict[str, BedrockChatSession] = {}
        logger.info(f"Bedrock prompt service initialized: {model_id} in {region}")

    async def make_prompt(
        self,
        conversation_id: str,
        user_input: str,
        transcript: Transcript,
        display_name: Optional[str] = None,
    ) -> Transcript:
        logger.info(f"Bedrock prompt for {conversation_id}: {user_input}")
        messages = list(transcript)

        if not messages:
            messages.append(self._system_message(display_name))

        session = self._sessions.get(conversation_id)
        if session is None or not transcript or session.history != to_claude_history(messages):
            session = self._start_session(messages, display_name)
            self._sessions[conversation_id] = session

        messages.append(Message(role=Role.USER, content=user_input))

        try:
            reply = await asyncio.to_thread(session.send_message, user_input)
            if reply:
                messages.append(Message(role=Role.ASSISTANT, content=reply))
            logger.info(f"Bedrock reply for {conversation_id}: {reply}")
        except Exception as e:
            logger.error(f"Bedrock completion failed for {conversation_id}: {e}")

        return messages

    def has_session(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions

    def reset_session(self, conversation_id: str) -> None:
        self._sessions.pop(conversation_id, None)

    def reset_all_sessions(self) -> None:
        self._sessions.clear()

    def _start_session(self, messages: Transcript, display_name: Optional[str]) -> BedrockChatSession:
        if messages and messages[0].role == Role.SYSTEM:
            system = messages[0].content
        else:
            system = self._system_message(display_name).content

        return BedrockChatSession(
            client=self._client,
            model_id=self.model_id,
            system=system,
            history=to_claude_history(messages),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
