"""
API Endpoint for the Query Scheduler

Called by an external cron with a schedule type (daily, weekly, manual).
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from citetrack.services import TrackingServices

from .dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Scheduler"])


class SchedulerRequest(BaseModel):
    """Request to run a scheduling cycle."""
    type: Literal["daily", "weekly", "manual"] = "daily"
    user_ids: Optional[List[str]] = Field(default=None, alias="userIds")
    priority: Optional[Literal["high", "normal", "low"]] = None

    class Config:
        populate_by_name = True


@router.post("/query-scheduler")
async def run_query_scheduler(
    request: SchedulerRequest,
    services: TrackingServices = Depends(get_services),
):
    """Process due queries for all (or the given) users."""
    try:
        summary = await services.scheduler.run_schedule(
            request.type,
            user_ids=request.user_ids,
            priority=request.priority,
        )
    except Exception as e:
        logger.error(f"Scheduler error: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "type": request.type,
        "summary": summary.to_dict(),
        "message": (
            f"Processed {summary.processed_users} users and "
            f"{summary.processed_queries} queries"
        ),
    }
