"""
API Endpoints for Citation History

Read-only view over a user's recent citation checks with summary stats.
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from citetrack.reporting import recent_activity, summarize_citations
from citetrack.services import TrackingServices

from .dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Citations"])


@router.get("/{user_id}/citations")
async def list_user_citations(
    user_id: str,
    limit: int = Query(100, ge=1, le=500),
    services: TrackingServices = Depends(get_services),
):
    """Recent citations (newest first), stats and an activity feed."""
    try:
        citations = services.repository.list_citations(user_id, limit=limit)
    except Exception as e:
        logger.error(f"Failed to load citations for user {user_id}: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "citations": [
            {
                "id": c.id,
                "queryId": c.query_id,
                "queryText": c.query_text,
                "engine": c.engine,
                "cited": c.cited,
                "position": c.position,
                "confidenceScore": c.confidence_score,
                "runDate": c.run_date.isoformat() if c.run_date else None,
            }
            for c in citations
        ],
        "stats": summarize_citations(citations).to_dict(),
        "recentActivity": recent_activity(citations),
    }
