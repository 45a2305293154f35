"""Configuration settings for the Ledgerly assistant."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hosted backend (REST tables + serverless functions)
    backend_url: str = Field(
        default="http://localhost:54321", validation_alias="LEDGERLY_BACKEND_URL"
    )
    backend_key: SecretStr = Field(..., validation_alias="LEDGERLY_BACKEND_KEY")
    access_token: SecretStr = Field(..., validation_alias="LEDGERLY_ACCESS_TOKEN")
    user_id: str = Field(..., validation_alias="LEDGERLY_USER_ID")
    backend_timeout: float = Field(default=30.0, validation_alias="LEDGERLY_TIMEOUT")
    backend_max_retries: int = Field(default=3, validation_alias="LEDGERLY_MAX_RETRIES")

    # Currency handling
    exchange_rate_ttl_seconds: float = Field(
        default=3600.0, validation_alias="EXCHANGE_RATE_TTL_SECONDS"
    )
    default_currency: str = Field(default="USD", validation_alias="DEFAULT_CURRENCY")

    # LLM
    anthropic_api_key: SecretStr = Field(..., validation_alias="ANTHROPIC_API_KEY")
    claude_model: str = Field(default="claude-haiku-4-5", validation_alias="CLAUDE_MODEL")
    llm_max_tokens: int = Field(default=4096, validation_alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.3, validation_alias="LLM_TEMPERATURE")
    llm_max_retries: int = Field(default=2, validation_alias="LLM_MAX_RETRIES")
    assistant_max_iterations: int = Field(
        default=10, validation_alias="ASSISTANT_MAX_ITERATIONS"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
