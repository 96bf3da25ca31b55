"""
Engine Adapter

Runs one tracked query through one engine and records the outcome:

1. Validate the request
2. Resolve the engine client (missing API key -> ConfigurationError)
3. Ask the engine
4. Detect citations in the answer
5. Append a citation row and touch the query's last_run

Failures never escape process(); they come back as a failure envelope so
the batch orchestrator can treat them as data.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from citetrack.database.repository import TrackingRepository
from citetrack.detection import CitationResult, detect_citations
from citetrack.errors import (
    CitetrackError,
    ConfigurationError,
    EmptyResponse,
    InvalidRequest,
    NotFound,
    PersistenceError,
)
from citetrack.utils.timeutil import utc_now

from .base import ENGINE_BASE_CONFIDENCE, EngineClient
from .config import EngineClients

logger = logging.getLogger(__name__)


@dataclass
class AdapterResult:
    """Envelope returned by EngineAdapter.process."""
    success: bool
    engine: str
    query_id: Optional[str] = None
    citation: Optional[CitationResult] = None
    citation_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "engine": self.engine,
            "queryId": self.query_id,
        }
        if self.citation is not None:
            data["citation"] = self.citation.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


class EngineAdapter:
    """
    Provider-agnostic adapter around one EngineClient.

    Usage:
        adapter = EngineAdapter("ChatGPT", client, repository)
        result = await adapter.process(query_id, "best CRM?", ["acme.com"], ["acme"])
        if result.success:
            ...
    """

    def __init__(
        self,
        engine: str,
        client: Optional[EngineClient],
        repository: TrackingRepository,
        base_confidence: Optional[float] = None,
    ):
        """
        Args:
            engine: Engine label (ChatGPT, Perplexity, Gemini)
            client: Engine client, or None when the engine's key is not configured
            repository: Store for citations and query metadata
            base_confidence: Detector floor (defaults to the engine's calibrated rate)
        """
        self.engine = engine
        self.client = client
        self.repository = repository
        self.base_confidence = (
            base_confidence if base_confidence is not None
            else ENGINE_BASE_CONFIDENCE.get(engine, 0.5)
        )

    async def process(
        self,
        query_id: str,
        query_text: str,
        user_domains: Optional[Sequence[str]] = None,
        brand_keywords: Optional[Sequence[str]] = None,
    ) -> AdapterResult:
        """
        Process one query through this engine.

        Returns:
            AdapterResult; success=False with an error message on any failure
        """
        try:
            citation, citation_id = await self._process(
                query_id, query_text, list(user_domains or []), list(brand_keywords or [])
            )
        except CitetrackError as e:
            logger.error(f"{self.engine} processing failed for query {query_id}: {e}")
            return AdapterResult(success=False, engine=self.engine, query_id=query_id, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected {self.engine} error for query {query_id}")
            return AdapterResult(success=False, engine=self.engine, query_id=query_id, error=str(e))

        return AdapterResult(
            success=True,
            engine=self.engine,
            query_id=query_id,
            citation=citation,
            citation_id=citation_id,
        )

    async def _process(
        self,
        query_id: str,
        query_text: str,
        user_domains: List[str],
        brand_keywords: List[str],
    ):
        if not query_id or not query_text:
            raise InvalidRequest("Missing required fields: queryId, queryText")

        if self.client is None:
            raise ConfigurationError(f"{self.engine} API key not configured")

        response_text = await self.client.complete(query_text)
        if not response_text and not self.client.allows_empty_response:
            raise EmptyResponse(f"No response from {self.engine} API")

        citation = detect_citations(
            response_text, user_domains, brand_keywords, self.base_confidence
        )

        user_id = self.repository.get_query_owner(query_id)
        if not user_id:
            raise NotFound("Query not found")

        now = utc_now()
        citation_id = self.repository.insert_citation(
            query_id=query_id,
            user_id=user_id,
            engine=self.engine,
            result=citation,
            run_date=now,
        )
        try:
            self.repository.touch_query_last_run(query_id, now)
        except PersistenceError as e:
            logger.warning(f"Could not update last_run for query {query_id}: {e}")

        logger.info(
            f"{self.engine} query {query_id}: cited={citation.cited} "
            f"position={citation.position} confidence={citation.confidence_score:.2f}"
        )
        return citation, citation_id


def build_adapters(
    clients: EngineClients,
    repository: TrackingRepository,
) -> Dict[str, EngineAdapter]:
    """One adapter per known engine; unconfigured engines get client=None."""
    return {
        engine: EngineAdapter(engine, clients.get(engine), repository)
        for engine in ENGINE_BASE_CONFIDENCE
    }
