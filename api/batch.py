"""
API Endpoint for Batch Processing

Runs a user's tracked queries across engines and reports per-task status.
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from citetrack.services import TrackingServices

from .dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Batch"])


class BatchRequest(BaseModel):
    """Request to process a user's queries."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    query_ids: Optional[List[str]] = Field(default=None, alias="queryIds")
    engines: Optional[List[str]] = None
    priority: Literal["high", "normal", "low"] = "normal"

    class Config:
        populate_by_name = True


@router.post("/process-query-batch")
async def process_query_batch(
    request: BatchRequest,
    services: TrackingServices = Depends(get_services),
):
    """
    Process queries for a user.

    Individual task failures are reported in `statuses` and `failedCount`;
    only a failure to load the user's queries or domains fails the call.
    """
    try:
        result = await services.orchestrator.run_batch(
            request.user_id,
            query_ids=request.query_ids,
            engines=request.engines,
            priority=request.priority,
        )
    except Exception as e:
        logger.error(f"Batch processing error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return result.to_dict()
