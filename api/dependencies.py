"""
FastAPI Dependencies

Provides the process-wide tracking services to route handlers. Tests swap
them via app.dependency_overrides[get_services].
"""

import logging
from typing import Optional

from citetrack.services import TrackingServices, build_services

logger = logging.getLogger(__name__)

_services: Optional[TrackingServices] = None


def get_services() -> TrackingServices:
    """Get or lazily build the tracking services."""
    global _services
    if _services is None:
        _services = build_services()
        logger.info("Tracking services initialized")
    return _services


async def shutdown_services() -> None:
    """Close engine clients on shutdown."""
    global _services
    if _services is not None:
        await _services.close()
        _services = None
