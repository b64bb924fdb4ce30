"""
History manager: fault-isolating wrapper around a HistoryStore.

A storage outage degrades to "the bot forgets", never to a crash.
"""

import logging

from .history_store import HistoryStore
from .messages import Transcript

logger = logging.getLogger(__name__)


class HistoryManager:
    """Reads and writes transcripts, converting store failures into logged no-ops."""

    def __init__(self, store: HistoryStore):
        self.store = store

    async def get_history(self, conversation_id: str) -> Transcript:
        """Get the transcript, or an empty one if it is absent or the store fails."""
        try:
            return await self.store.get(conversation_id)
        except Exception as e:
            logger.error(f"History read failed for {conversation_id}: {e}")
            return []

    async def set_history(self, conversation_id: str, transcript: Transcript) -> bool:
        """Persist the transcript. Returns False if the changes were lost."""
        try:
            await self.store.set(conversation_id, transcript)
            return True
        except Exception as e:
            logger.error(f"History write failed for {conversation_id}: {e}")
            return False

    async def clear_history(self, conversation_id: str) -> bool:
        try:
            await self.store.delete(conversation_id)
            return True
        except Exception as e:
            logger.error(f"History clear failed for {conversation_id}: {e}")
            return False
