"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Engine API keys (each optional - a missing key only disables that engine)
    OPENAI_API_KEY: Optional[str] = None
    PERPLEXITY_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None

    # Engine models
    OPENAI_MODEL: str = "gpt-4"
    PERPLEXITY_MODEL: str = "sonar"
    GEMINI_MODEL: str = "gemini-1.5-flash-latest"

    # Database
    DATABASE_URL: Optional[str] = None

    # Application Settings
    LOG_LEVEL: str = "INFO"

    # Timeouts (seconds)
    ENGINE_TIMEOUT: float = 60.0

    # Pacing (seconds)
    BATCH_DELAY_SECONDS: float = 1.0
    USER_DELAY_SECONDS: float = 0.1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
