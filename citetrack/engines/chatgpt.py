"""
ChatGPT Engine Client

OpenAI chat completions API.

API: https://platform.openai.com/docs/api-reference/chat
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .base import HTTPEngineClient, SYSTEM_PROMPT, MAX_OUTPUT_TOKENS

logger = logging.getLogger(__name__)


class ChatGPTClient(HTTPEngineClient):
    """
    Async client for the OpenAI chat completions endpoint.

    Usage:
        client = ChatGPTClient(api_key="sk-...")
        text = await client.complete("Best CRM for small agencies?")
        await client.close()
    """

    BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4"
    TEMPERATURE = 0.1

    engine = "ChatGPT"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_key=api_key,
            model=model or self.DEFAULT_MODEL,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": MAX_OUTPUT_TOKENS,
            "temperature": self.TEMPERATURE,
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
