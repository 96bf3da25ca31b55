"""
Engine Client Interface

Every AI answer engine is reached through one capability:

    text = await client.complete(prompt)

Provider-specific request construction and response envelopes stay inside
the concrete clients, so detection and persistence never see them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from citetrack.errors import ProviderError

logger = logging.getLogger(__name__)

# Instruction sent with every tracked query
SYSTEM_PROMPT = (
    "You are a helpful assistant. Provide comprehensive, informative answers "
    "to user questions. Include specific company names, products, and services "
    "when relevant."
)

# Calibrated trust per provider, used as the detector's confidence floor
ENGINE_BASE_CONFIDENCE = {
    "ChatGPT": 0.5,
    "Perplexity": 0.6,
    "Gemini": 0.55,
}

MAX_OUTPUT_TOKENS = 500


class EngineClient(ABC):
    """Single-method capability shared by all engine providers."""

    #: Engine label stored on citation rows
    engine: str = ""

    #: Whether an empty answer is acceptable (caller decides what it means)
    allows_empty_response: bool = False

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the plain-text answer."""

    async def close(self):
        """Release any transport resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class HTTPEngineClient(EngineClient):
    """
    Base for engines reached over a JSON HTTP API.

    Subclasses build the payload and pick the answer out of the envelope.
    A single request is made per call; retries belong to the caller.
    """

    BASE_URL = ""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            api_key: Provider API key
            model: Provider model name
            timeout: Request timeout in seconds (bounds a hung upstream call)
            headers: Extra headers (auth etc.)
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.api_key = api_key
        self.model = model

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def _post(
        self,
        path: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST a JSON payload; raise ProviderError on any non-success."""
        if self._closed:
            raise ProviderError(f"{self.engine} client has been closed")

        try:
            response = await self._client.post(path, json=payload, params=params)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.engine} request timed out: {e}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"{self.engine} request failed: {e}") from e

        if response.status_code >= 400:
            body = response.text
            logger.error(f"{self.engine} API error {response.status_code}: {body}")
            raise ProviderError(
                f"{self.engine} API error: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.engine} returned invalid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True
