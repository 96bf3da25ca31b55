"""
Gemini Engine Client

Google Generative Language API (generateContent).
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .base import HTTPEngineClient, SYSTEM_PROMPT, MAX_OUTPUT_TOKENS

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiClient(HTTPEngineClient):
    """
    Async client for Gemini generateContent.

    The API key travels as a query parameter; Gemini has no system turn in
    this call shape, so the instruction is prefixed to the question.
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-1.5-flash-latest"
    SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

    engine = "Gemini"

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
            transport=transport,
        )

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [
                {"parts": [{"text": f"{SYSTEM_PROMPT} Here's the question: {prompt}"}]}
            ],
            "generationConfig": {
                "temperature": 0.1,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
            },
            "safetySettings": [
                {"category": category, "threshold": self.SAFETY_THRESHOLD}
                for category in SAFETY_CATEGORIES
            ],
        }

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return ""
        return parts[0].get("text") or ""

    async def complete(self, prompt: str) -> str:
        data = await self._post(
            f"/models/{self.model}:generateContent",
            self.build_payload(prompt),
            params={"key": self.api_key},
        )
        return self.extract_text(data)
