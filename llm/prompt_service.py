"""
Prompt service abstraction.

A prompt service turns (identity, user input, prior transcript) into an
updated transcript that ends with the model's reply. One implementation
exists per LLM backend; they are interchangeable at the call site.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .messages import Message, Role, Transcript

logger = logging.getLogger(__name__)

SystemPromptFn = Callable[[str], str]

SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
ANONYMOUS_NAME = "anonymous"


def sanitize_display_name(display_name: Optional[str]) -> str:
    """Return the display name if it is safe to embed in prompts, else a placeholder."""
    if display_name and SAFE_NAME_PATTERN.match(display_name):
        return display_name
    return ANONYMOUS_NAME


class PromptService(ABC):
    """Base class for LLM prompt services."""

    def __init__(
        self,
        system_prompt_fn: SystemPromptFn,
        model_id: str,
        max_tokens: int = 200,
        temperature: float = 0.0,
    ):
        self.system_prompt_fn = system_prompt_fn
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def make_prompt(
        self,
        conversation_id: str,
        user_input: str,
        transcript: Transcript,
        display_name: Optional[str] = None,
    ) -> Transcript:
        """
        Extend the transcript with the user input and the model's reply.

        The input list is not mutated. If the completion call fails the
        returned transcript ends with the user message.
        """
        ...

    def get_last_message(self, transcript: Transcript) -> Optional[str]:
        """Return the latest assistant text, or None if the last entry is not from the assistant."""
        if not transcript:
            return None
        last = transcript[-1]
        if last.role == Role.ASSISTANT:
            return last.content
        return None

    def reset_session(self, conversation_id: str) -> None:
        """Discard per-identity session state. Session-less backends keep none."""

    def reset_all_sessions(self) -> None:
        """Discard all session state."""

    def _system_message(self, display_name: Optional[str]) -> Message:
        return Message(
            role=Role.SYSTEM,
            content=self.system_prompt_fn(sanitize_display_name(display_name)),
        )
