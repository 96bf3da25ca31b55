"""
API Endpoints for Engine Adapters

One POST endpoint per AI engine. Each processes a single query, stores the
citation and returns the adapter envelope:
    200 {success: true, citation, engine, queryId}
    500 {success: false, error, engine, queryId}
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from citetrack.services import TrackingServices

from .dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Engines"])


class QueryRequest(BaseModel):
    """Single query to run through one engine."""
    query_id: Optional[str] = Field(default=None, alias="queryId")
    query_text: Optional[str] = Field(default=None, alias="queryText")
    user_domains: List[str] = Field(default_factory=list, alias="userDomains")
    brand_keywords: List[str] = Field(default_factory=list, alias="brandKeywords")

    class Config:
        populate_by_name = True


async def _process(engine: str, request: QueryRequest, services: TrackingServices) -> JSONResponse:
    adapter = services.adapters[engine]
    result = await adapter.process(
        request.query_id,
        request.query_text,
        request.user_domains,
        request.brand_keywords,
    )
    return JSONResponse(
        status_code=200 if result.success else 500,
        content=result.to_dict(),
    )


@router.post("/process-openai-query")
async def process_openai_query(
    request: QueryRequest,
    services: TrackingServices = Depends(get_services),
):
    """Run a query through ChatGPT and detect brand citations."""
    return await _process("ChatGPT", request, services)


@router.post("/process-perplexity-query")
async def process_perplexity_query(
    request: QueryRequest,
    services: TrackingServices = Depends(get_services),
):
    """Run a query through Perplexity and detect brand citations."""
    return await _process("Perplexity", request, services)


@router.post("/process-gemini-query")
async def process_gemini_query(
    request: QueryRequest,
    services: TrackingServices = Depends(get_services),
):
    """Run a query through Gemini and detect brand citations."""
    return await _process("Gemini", request, services)
