"""
Centralized configuration for the conversation bot.

All settings are loaded from environment variables via .env file.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Telegram transport
    telegram_bot_token: str = Field(default="", env="TELEGRAM_BOT_TOKEN")
    telegram_polling: bool = Field(default=False, env="TELEGRAM_POLLING")

    # Addressing and replies
    bot_command: str = Field(default="/nora", env="BOT_COMMAND")
    allowed_chat_id: str = Field(default="", env="ALLOWED_CHAT_ID")  # comma separated
    default_response: str = Field(
        default="Mention the bot command followed by your request, or reply to one of my messages.",
        env="DEFAULT_RESPONSE",
    )
    reply_prefix: str = Field(default="\U0001F916 ", env="REPLY_PREFIX")

    # LLM provider selection
    llm_provider: str = Field(default="openai", env="LLM_PROVIDER")  # openai | bedrock
    max_tokens: int = Field(default=200, env="MAX_TOKENS")
    temperature: float = Field(default=0.0, env="TEMPERATURE")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None, env="OPENAI_API_KEY")
    openai_llm_model: str = Field(default="gpt-4o-mini", env="OPENAI_LLM_MODEL")

    # AWS / Bedrock / DynamoDB / Lambda
    aws_region: str = Field(default="us-east-1", env="AWS_REGION")
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0", env="BEDROCK_LLM_MODEL_ID"
    )
    table_name: Optional[str] = Field(default=None, env="TABLE_NAME")
    history_ttl_minutes: int = Field(default=5, env="HISTORY_TTL_MINUTES")
    main_lambda_name: Optional[str] = Field(default=None, env="MAIN_LAMBDA_NAME")

    # Dev webhook server
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def allowed_chats(self) -> List[str]:
        return [c.strip() for c in self.allowed_chat_id.split(",") if c.strip()]

    @property
    def llm_model_id(self) -> str:
        if self.is_bedrock:
            return self.bedrock_llm_model_id
        return self.openai_llm_model


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for an entry point."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
