"""
AI Answer Engines

Clients for the engines we track and the adapter that turns an engine
answer into a stored citation:
- ChatGPT: OpenAI chat completions
- Perplexity: web-grounded answers
- Gemini: Google generateContent
- Config: unified configuration and client management
"""

from .base import EngineClient, HTTPEngineClient, ENGINE_BASE_CONFIDENCE, SYSTEM_PROMPT
from .chatgpt import ChatGPTClient
from .perplexity import PerplexityClient
from .gemini import GeminiClient
from .config import EngineAPIConfig, EngineClients
from .adapter import AdapterResult, EngineAdapter, build_adapters

__all__ = [
    # Clients
    "EngineClient",
    "HTTPEngineClient",
    "ChatGPTClient",
    "PerplexityClient",
    "GeminiClient",
    "ENGINE_BASE_CONFIDENCE",
    "SYSTEM_PROMPT",
    # Config
    "EngineAPIConfig",
    "EngineClients",
    # Adapter
    "AdapterResult",
    "EngineAdapter",
    "build_adapters",
]
