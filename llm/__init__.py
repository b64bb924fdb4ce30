"""
Conversation Orchestration Module.

This module handles:
- Prompt service abstraction (OpenAI, Bedrock)
- Transcript storage (in-memory, DynamoDB) behind a fault-isolating manager
- The per-message conversation state machine
"""

from .history_manager import HistoryManager
from .history_store import HistoryStore, InMemoryHistoryStore
from .messages import Message, Role, Transcript
from .orchestrator import (
    BotConfigurationError,
    ConversationBot,
    LLMProvider,
    MessageInfo,
    ProcessResult,
    ProcessStatus,
)
from .prompt_service import PromptService
from .prompt_templates import PromptTemplates, detect_json_result

__all__ = [
    "BotConfigurationError",
    "ConversationBot",
    "HistoryManager",
    "HistoryStore",
    "InMemoryHistoryStore",
    "LLMProvider",
    "Message",
    "MessageInfo",
    "ProcessResult",
    "ProcessStatus",
    "PromptService",
    "PromptTemplates",
    "Role",
    "Transcript",
    "detect_json_result",
]
