"""
Engine API Configuration

Configuration and factory for engine clients. Clients are created once per
process and injected into the adapters.

Environment variables (all optional - a missing key disables only that engine):
- OPENAI_API_KEY, PERPLEXITY_API_KEY, GEMINI_API_KEY
- OPENAI_MODEL, PERPLEXITY_MODEL, GEMINI_MODEL
- CHATGPT_ENABLED, PERPLEXITY_ENABLED, GEMINI_ENABLED (default: true)
- ENGINE_TIMEOUT: per-request timeout in seconds (default: 60)
"""

import os
import logging
from typing import Dict, Optional

from citetrack.utils.config import Settings, get_settings

from .base import EngineClient
from .chatgpt import ChatGPTClient
from .gemini import GeminiClient
from .perplexity import PerplexityClient

logger = logging.getLogger(__name__)


def get_env_bool(key: str, default: bool = True) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("false", "0", "no", "off"):
        return False
    if val in ("true", "1", "yes", "on"):
        return True
    return default


class EngineAPIConfig:
    """Configuration for engine APIs."""

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        perplexity_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        openai_model: Optional[str] = None,
        perplexity_model: Optional[str] = None,
        gemini_model: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize engine API configuration.

        Explicit arguments win over settings loaded from the environment.
        """
        settings = settings or get_settings()

        self.api_keys: Dict[str, Optional[str]] = {
            "ChatGPT": openai_api_key or settings.OPENAI_API_KEY,
            "Perplexity": perplexity_api_key or settings.PERPLEXITY_API_KEY,
            "Gemini": gemini_api_key or settings.GEMINI_API_KEY,
        }
        self.models: Dict[str, str] = {
            "ChatGPT": openai_model or settings.OPENAI_MODEL,
            "Perplexity": perplexity_model or settings.PERPLEXITY_MODEL,
            "Gemini": gemini_model or settings.GEMINI_MODEL,
        }
        self.enabled: Dict[str, bool] = {
            "ChatGPT": get_env_bool("CHATGPT_ENABLED", True),
            "Perplexity": get_env_bool("PERPLEXITY_ENABLED", True),
            "Gemini": get_env_bool("GEMINI_ENABLED", True),
        }
        self.timeout = timeout or settings.ENGINE_TIMEOUT

    def has_engine(self, engine: str) -> bool:
        """Check if an engine is configured and enabled."""
        return self.enabled.get(engine, False) and bool(self.api_keys.get(engine))

    def log_status(self):
        """Log configuration status."""
        status = ", ".join(
            f"{name}={'enabled' if self.has_engine(name) else 'disabled'}"
            for name in self.api_keys
        )
        logger.info(f"Engine API status: {status}")


class EngineClients:
    """
    Factory and manager for engine clients.

    Usage:
        clients = EngineClients(EngineAPIConfig())

        client = clients.get("Gemini")   # None when GEMINI_API_KEY is missing
        if client:
            text = await client.complete("...")

        await clients.close()
    """

    _FACTORIES = {
        "ChatGPT": ChatGPTClient,
        "Perplexity": PerplexityClient,
        "Gemini": GeminiClient,
    }

    def __init__(self, config: Optional[EngineAPIConfig] = None):
        self.config = config or EngineAPIConfig()
        self._clients: Dict[str, EngineClient] = {}

    def get(self, engine: str) -> Optional[EngineClient]:
        """Get or create the client for an engine, or None if not configured."""
        if engine in self._clients:
            return self._clients[engine]

        factory = self._FACTORIES.get(engine)
        if factory is None or not self.config.has_engine(engine):
            return None

        client = factory(
            api_key=self.config.api_keys[engine],
            model=self.config.models[engine],
            timeout=self.config.timeout,
        )
        self._clients[engine] = client
        logger.info(f"Initialized {engine} client")
        return client

    async def close(self):
        """Close all clients."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
        logger.info("Closed engine clients")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
