"""
Query Batch Orchestrator

Fans a user's tracked queries out across the AI engines:

1. Load the user's active queries and tracked domains
2. Build one (query, engine) task per enabled engine
3. Run tasks in concurrency groups sized by priority, pausing between groups
4. Report per-task status plus aggregate counts

A failing task never affects its siblings: every task records its own
outcome and the batch call itself only fails when the upfront loads fail.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from citetrack.database.models import ALL_ENGINES
from citetrack.database.repository import TrackedQuery, TrackingRepository
from citetrack.detection import derive_brand_keywords
from citetrack.engines.adapter import EngineAdapter
from citetrack.errors import InvalidRequest
from citetrack.utils.timeutil import utc_now

logger = logging.getLogger(__name__)

# Concurrent tasks per group; paying tiers get faster turnaround
PRIORITY_BATCH_SIZES = {
    "high": 5,
    "normal": 3,
    "low": 1,
}
DEFAULT_PRIORITY = "normal"

# Pause between groups to respect upstream provider rate limits
DEFAULT_BATCH_DELAY = 1.0


# =============================================================================
# TASK STATUS
# =============================================================================

class TaskStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.PROCESSING},
    TaskStatus.PROCESSING: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}


@dataclass
class ProcessingStatus:
    """Lifecycle of one (query, engine) task within a single batch call."""
    query_id: str
    engine: str
    status: TaskStatus = TaskStatus.PENDING
    error: Optional[str] = None
    completed_at: Optional[datetime] = None

    def _move(self, target: TaskStatus):
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Illegal status transition {self.status.value} -> {target.value}")
        self.status = target

    def start(self):
        self._move(TaskStatus.PROCESSING)

    def complete(self):
        self._move(TaskStatus.COMPLETED)
        self.completed_at = utc_now()

    def fail(self, error: str):
        self._move(TaskStatus.FAILED)
        self.error = error

    @property
    def is_settled(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "queryId": self.query_id,
            "engine": self.engine,
            "status": self.status.value,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at.isoformat()
        return data


@dataclass
class BatchResult:
    """Outcome of one orchestration pass."""
    processed_count: int = 0
    failed_count: int = 0
    total_queries: int = 0
    statuses: List[ProcessingStatus] = field(default_factory=list)
    message: str = ""
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "processedCount": self.processed_count,
            "failedCount": self.failed_count,
            "totalQueries": self.total_queries,
            "statuses": [s.to_dict() for s in self.statuses],
            "message": self.message,
        }


# =============================================================================
# TASK GROUP
# =============================================================================

async def run_in_batches(
    jobs: Sequence[Callable[[], Awaitable[Any]]],
    batch_size: int,
    delay: float = 0.0,
) -> List[Any]:
    """
    Run jobs in consecutive groups of batch_size.

    Each group is settled completely (exceptions are returned, not raised)
    before the delay and the next group. Results keep job order.
    """
    batch_size = max(1, batch_size)
    results: List[Any] = []

    for start in range(0, len(jobs), batch_size):
        group = jobs[start:start + batch_size]
        results.extend(await asyncio.gather(*(job() for job in group), return_exceptions=True))

        if start + batch_size < len(jobs) and delay > 0:
            await asyncio.sleep(delay)

    return results


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class BatchOrchestrator:
    """
    Runs a user's queries across engines with bounded concurrency.

    Usage:
        orchestrator = BatchOrchestrator(repository, adapters)
        result = await orchestrator.run_batch(user_id, priority="high")
        print(result.processed_count, result.failed_count)
    """

    def __init__(
        self,
        repository: TrackingRepository,
        adapters: Dict[str, EngineAdapter],
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ):
        """
        Args:
            repository: Source of queries and domains
            adapters: Engine label -> adapter
            batch_delay: Seconds to wait between concurrency groups
        """
        self.repository = repository
        self.adapters = adapters
        self.batch_delay = batch_delay

    async def run_batch(
        self,
        user_id: str,
        query_ids: Optional[Sequence[str]] = None,
        engines: Optional[Sequence[str]] = None,
        priority: str = DEFAULT_PRIORITY,
    ) -> BatchResult:
        """
        Process a user's active queries.

        Args:
            user_id: Owner of the queries
            query_ids: Restrict to these queries (default: all active)
            engines: Engines to run (default: all three)
            priority: high | normal | low, sets the group size

        Returns:
            BatchResult with counts and per-task statuses

        Raises:
            InvalidRequest: user_id missing
            PersistenceError: queries or domains could not be loaded
        """
        if not user_id:
            raise InvalidRequest("Missing required field: userId")

        queries = self.repository.get_active_queries(user_id, query_ids)
        if not queries:
            logger.info(f"No queries to process for user {user_id}")
            return BatchResult(message="No queries to process")

        domains = self.repository.get_user_domains(user_id)
        brand_keywords = derive_brand_keywords(domains)

        requested = list(engines) if engines else list(ALL_ENGINES)
        statuses, jobs = self._build_tasks(queries, requested, domains, brand_keywords)

        batch_size = PRIORITY_BATCH_SIZES.get(priority, PRIORITY_BATCH_SIZES[DEFAULT_PRIORITY])
        logger.info(
            f"Processing {len(jobs)} tasks for user {user_id} "
            f"({len(queries)} queries, priority={priority}, batch_size={batch_size})"
        )

        await run_in_batches(jobs, batch_size, self.batch_delay)

        completed = sum(1 for s in statuses if s.status == TaskStatus.COMPLETED)
        failed = sum(1 for s in statuses if s.status == TaskStatus.FAILED)

        return BatchResult(
            processed_count=completed,
            failed_count=failed,
            total_queries=len(queries),
            statuses=statuses,
            message=f"Processed {completed} queries successfully, {failed} failed",
        )

    def _build_tasks(
        self,
        queries: List[TrackedQuery],
        requested: List[str],
        domains: List[str],
        brand_keywords: List[str],
    ):
        """Create every status upfront, in creation order, then the jobs."""
        statuses: List[ProcessingStatus] = []
        jobs: List[Callable[[], Awaitable[None]]] = []

        for query in queries:
            for engine in query.engines or []:
                if engine not in requested:
                    continue
                status = ProcessingStatus(query_id=query.id, engine=engine)
                statuses.append(status)
                jobs.append(self._make_job(status, query, domains, brand_keywords))

        return statuses, jobs

    def _make_job(
        self,
        status: ProcessingStatus,
        query: TrackedQuery,
        domains: List[str],
        brand_keywords: List[str],
    ) -> Callable[[], Awaitable[None]]:
        async def job():
            await self._run_task(status, query, domains, brand_keywords)
        return job

    async def _run_task(
        self,
        status: ProcessingStatus,
        query: TrackedQuery,
        domains: List[str],
        brand_keywords: List[str],
    ) -> None:
        """Run one task, capturing any failure into its status."""
        try:
            status.start()

            adapter = self.adapters.get(status.engine)
            if adapter is None:
                raise InvalidRequest(f"Unsupported engine: {status.engine}")

            result = await adapter.process(query.id, query.query_text, domains, brand_keywords)
            if result.success:
                status.complete()
            else:
                status.fail(result.error or f"Engine {status.engine} processing failed")

        except Exception as e:
            logger.error(f"Error processing query {query.id} with {status.engine}: {e}")
            if not status.is_settled:
                status.fail(str(e))
