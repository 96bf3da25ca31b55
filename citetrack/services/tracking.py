"""
Tracking Service Wiring

Builds the process-wide object graph once: repository, engine clients,
adapters, orchestrator and scheduler. Clients are created here and passed
down, never held in module globals.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from citetrack.batch.orchestrator import BatchOrchestrator
from citetrack.database.repository import TrackingRepository
from citetrack.engines.adapter import EngineAdapter, build_adapters
from citetrack.engines.config import EngineAPIConfig, EngineClients
from citetrack.scheduler.scheduler import QueryScheduler
from citetrack.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class TrackingServices:
    """Everything a request handler or the cron script needs."""
    repository: TrackingRepository
    clients: EngineClients
    adapters: Dict[str, EngineAdapter]
    orchestrator: BatchOrchestrator
    scheduler: QueryScheduler

    async def close(self):
        await self.clients.close()


def build_services(
    settings: Optional[Settings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    clients: Optional[EngineClients] = None,
) -> TrackingServices:
    """
    Assemble the tracking pipeline.

    Args:
        settings: Application settings (defaults to environment)
        session_factory: SQLAlchemy session factory (defaults to the global one)
        clients: Pre-built engine clients (defaults to settings-driven clients)
    """
    settings = settings or get_settings()

    repository = TrackingRepository(session_factory)
    if clients is None:
        config = EngineAPIConfig(settings=settings)
        config.log_status()
        clients = EngineClients(config)

    adapters = build_adapters(clients, repository)
    orchestrator = BatchOrchestrator(
        repository,
        adapters,
        batch_delay=settings.BATCH_DELAY_SECONDS,
    )
    scheduler = QueryScheduler(
        repository,
        orchestrator,
        user_delay=settings.USER_DELAY_SECONDS,
    )

    return TrackingServices(
        repository=repository,
        clients=clients,
        adapters=adapters,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
