"""
Perplexity Engine Client

AI-powered answers grounded in real-time web search.

Perplexity provides:
- Real-time web search with AI understanding
- Citation tracking for sources
- Recency filtering of search results

API: https://docs.perplexity.ai/
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .base import HTTPEngineClient, MAX_OUTPUT_TOKENS

logger = logging.getLogger(__name__)

PERPLEXITY_SYSTEM_PROMPT = (
    "You are a helpful assistant. Provide comprehensive answers with specific "
    "company names, products, and recommendations when relevant. Include current "
    "information and cite sources when possible."
)


class PerplexityClient(HTTPEngineClient):
    """
    Async client for Perplexity API.

    Usage:
        client = PerplexityClient(api_key="your_api_key")

        text = await client.complete("Who makes the best trail shoes?")

        await client.close()
    """

    BASE_URL = "https://api.perplexity.ai"

    # Available models
    MODELS = {
        "sonar": "llama-3.1-sonar-small-128k-online",  # Fast, cheaper
        "sonar-pro": "llama-3.1-sonar-large-128k-online",  # More capable
        "sonar-huge": "llama-3.1-sonar-huge-128k-online",  # Most capable
    }

    TEMPERATURE = 0.2
    RECENCY_FILTER = "month"

    engine = "Perplexity"
    allows_empty_response = True

    def __init__(
        self,
        api_key: str,
        model: str = "sonar",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Perplexity client.

        Args:
            api_key: Perplexity API key
            model: Model to use (sonar, sonar-pro, sonar-huge or a full name)
            timeout: Request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            api_key=api_key,
            model=self.MODELS.get(model, model),
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": PERPLEXITY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": MAX_OUTPUT_TOKENS,
            "temperature": self.TEMPERATURE,
            "search_domain_filter": [],  # Allow all domains
            "return_citations": True,
            "search_recency_filter": self.RECENCY_FILTER,
        }

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def complete(self, prompt: str) -> str:
        data = await self._post("/chat/completions", self.build_payload(prompt))
        return self.extract_text(data)
