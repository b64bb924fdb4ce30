"""
LLM prompt service implementations.
"""

from .bedrock import BedrockPromptService
from .openai_provider import OpenAIPromptService

__all__ = ["BedrockPromptService", "OpenAIPromptService"]
