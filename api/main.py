"""
Citetrack API

FastAPI application exposing each pipeline unit as a JSON POST endpoint:
1. /api/process-{openai,perplexity,gemini}-query - one query, one engine
2. /api/process-query-batch - a user's queries across engines
3. /api/query-scheduler - scheduled cycle over all users
4. /api/users/{user_id}/citations - citation history and stats
"""

import logging
import sys
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from citetrack import __version__
from citetrack.database import init_db, check_db_connection
from citetrack.utils.config import get_settings

from . import batch, citations, engines, scheduler
from .dependencies import shutdown_services

# Configure logging to stdout
logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

app = FastAPI(
    title="Citetrack",
    description="Tracks brand citations in ChatGPT, Perplexity and Gemini answers",
    version=__version__,
)

CORS_ORIGINS = ["*"]
CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# Uniform CORS preflight for every endpoint
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)

app.include_router(engines.router)
app.include_router(batch.router)
app.include_router(scheduler.router)
app.include_router(citations.router)


# ============================================================================
# STARTUP / SHUTDOWN
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    await shutdown_services()


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Never leak a stack trace to callers."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Citetrack"}


@app.get("/api/health")
async def health():
    """Detailed health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "database": "connected" if check_db_connection() else "disconnected",
    }


@app.options("/{path:path}")
async def options_fallback(path: str):
    """
    Answer OPTIONS requests that are not browser preflights.

    CORSMiddleware handles real preflights before routing; anything else
    (no Origin or no Access-Control-Request-Method) lands here.
    """
    return PlainTextResponse(
        "ok",
        headers={
            "Access-Control-Allow-Origin": ", ".join(CORS_ORIGINS),
            "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
            "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
        },
    )


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
