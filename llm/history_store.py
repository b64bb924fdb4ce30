"""
HistoryStore protocol for the conversation bot.

Abstracts transcript storage so the orchestrator can work
with either an in-process dict or a durable key-value backend.
"""

import logging
from typing import Dict, Protocol, runtime_checkable

from .messages import Transcript

logger = logging.getLogger(__name__)


@runtime_checkable
class HistoryStore(Protocol):
    """Protocol for transcript persistence, keyed by conversation identity."""

    async def get(self, conversation_id: str) -> Transcript:
        """Get the stored transcript, or an empty list if none exists."""
        ...

    async def set(self, conversation_id: str, transcript: Transcript) -> None:
        """Replace the stored transcript wholesale."""
        ...

    async def delete(self, conversation_id: str) -> None:
        """Forget the stored transcript."""
        ...


class InMemoryHistoryStore:
    """
    Process-local transcript store.

    Transcripts live as long as the process does; there is no expiry.
    """

    def __init__(self):
        self._transcripts: Dict[str, Transcript] = {}

    async def get(self, conversation_id: str) -> Transcript:
        return list(self._transcripts.get(conversation_id, []))

    async def set(self, conversation_id: str, transcript: Transcript) -> None:
        self._transcripts[conversation_id] = list(transcript)

    async def delete(self, conversation_id: str) -> None:
        self._transcripts.pop(conversation_id, None)
        logger.debug(f"Cleared in-memory history for {conversation_id}")
