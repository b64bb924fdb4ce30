"""
OpenAI prompt service.
"""

import logging
from typing import Any, Optional

from ..messages import Message, Role, Transcript
from ..prompt_service import PromptService, SystemPromptFn, sanitize_display_name

logger = logging.getLogger(__name__)


class OpenAIPromptService(PromptService):
    """
    OpenAI chat completions prompt service.

    Session-less: the transcript passed in is the whole conversation state
    and is sent in full on every call.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        system_prompt_fn: SystemPromptFn,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 200,
        temperature: float = 0.0,
        client: Optional[Any] = None,
    ):
        """
        Initialize OpenAI prompt service.

        Args:
            system_prompt_fn: Builds the system prompt from a display name
            api_key: OpenAI API key
            model_id: Model ID
            max_tokens: Reply-length ceiling
            temperature: Generation temperature
            client: Preconfigured AsyncOpenAI client
        """
        super().__init__(system_prompt_fn, model_id, max_tokens, temperature)

        if client is not None:
            self._client = client
        else:
            try:
                from openai import AsyncOpenAI
                self._client = AsyncOpenAI(api_key=api_key) if api_key else AsyncOpenAI()
            except ImportError:
                raise ImportError("openai package required. Install with: pip install openai")

        logger.info(f"OpenAI prompt service initialized: {model_id}")

    async def make_prompt(
        self,
        conversation_id: str,
        user_input: str,
        transcript: Transcript,
        display_name: Optional[str] = None,
    ) -> Transcript:
        logger.info(f"OpenAI prompt for {conversation_id}: {user_input}")
        messages = list(transcript)

        if not messages:
            messages.append(self._system_message(display_name))

        messages.append(Message(
            role=Role.USER,
            content=user_input,
            name=sanitize_display_name(display_name),
        ))

        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=[m.to_dict() for m in messages],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            reply = (response.choices[0].message.content or "").strip()
            messages.append(Message(role=Role.ASSISTANT, content=reply))
            logger.info(f"OpenAI reply for {conversation_id}: {reply}")
        except Exception as e:
            logger.error(f"OpenAI completion failed for {conversation_id}: {e}")

        return messages
