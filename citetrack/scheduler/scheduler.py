"""
Query Scheduler

Triggered externally (cron, CLI or HTTP) with a schedule type:
- daily:  queries not run in the last 24 hours (or never)
- weekly: queries not run in the last 168 hours (or never)
- manual: every active query

For each user the due queries are capped at the plan's per-cycle limit and
handed to the batch orchestrator at the plan's priority. The scheduler
holds no timers of its own.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from citetrack.batch.orchestrator import BatchOrchestrator
from citetrack.database.repository import ScheduledUser, TrackedQuery, TrackingRepository
from citetrack.errors import InvalidRequest
from citetrack.utils.timeutil import as_naive_utc, utc_now

from .plans import get_plan_quota

logger = logging.getLogger(__name__)

# Pause between users to smooth outbound load
DEFAULT_USER_DELAY = 0.1


class ScheduleType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MANUAL = "manual"


# Minimum age of last_run before a query is due again
DUE_AFTER = {
    ScheduleType.DAILY: timedelta(hours=24),
    ScheduleType.WEEKLY: timedelta(hours=24 * 7),
}


def is_due(query: TrackedQuery, schedule_type: ScheduleType, now: datetime) -> bool:
    """Whether a query should run in this cycle."""
    if schedule_type == ScheduleType.MANUAL:
        return True

    last_run = as_naive_utc(query.last_run)
    if last_run is None:
        return True
    return now - last_run >= DUE_AFTER[schedule_type]


@dataclass
class ScheduleSummary:
    """Aggregate outcome of one scheduler run."""
    total_users: int = 0
    processed_users: int = 0
    skipped_users: int = 0
    total_queries: int = 0
    processed_queries: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalUsers": self.total_users,
            "processedUsers": self.processed_users,
            "skippedUsers": self.skipped_users,
            "totalQueries": self.total_queries,
            "processedQueries": self.processed_queries,
            "errors": list(self.errors),
        }


class QueryScheduler:
    """
    Runs due queries for every (or selected) user within plan quotas.

    Usage:
        scheduler = QueryScheduler(repository, orchestrator)
        summary = await scheduler.run_schedule("daily")
    """

    def __init__(
        self,
        repository: TrackingRepository,
        orchestrator: BatchOrchestrator,
        user_delay: float = DEFAULT_USER_DELAY,
    ):
        self.repository = repository
        self.orchestrator = orchestrator
        self.user_delay = user_delay

    async def run_schedule(
        self,
        schedule_type: str = ScheduleType.DAILY.value,
        user_ids: Optional[Sequence[str]] = None,
        priority: Optional[str] = None,
    ) -> ScheduleSummary:
        """
        Run one scheduling cycle.

        Args:
            schedule_type: daily | weekly | manual
            user_ids: Restrict to these users (default: all)
            priority: Override the plan-derived orchestration priority

        Returns:
            ScheduleSummary; per-user failures are listed in summary.errors

        Raises:
            InvalidRequest: unknown schedule type
            PersistenceError: the user list could not be loaded
        """
        try:
            cycle = ScheduleType(schedule_type)
        except ValueError:
            raise InvalidRequest(f"Unknown schedule type: {schedule_type}")

        logger.info(f"Starting {cycle.value} query processing")

        users = self.repository.get_users_for_schedule(user_ids)
        summary = ScheduleSummary(total_users=len(users))
        now = utc_now()

        for index, user in enumerate(users):
            try:
                submitted = await self._process_user(user, cycle, now, priority, summary)
            except Exception as e:
                logger.error(f"Error processing user {user.id}: {e}")
                summary.errors.append(f"User {user.id}: {e}")
                submitted = True

            if submitted and index < len(users) - 1 and self.user_delay > 0:
                await asyncio.sleep(self.user_delay)

        logger.info(
            f"Scheduler finished: {summary.processed_users}/{summary.total_users} users, "
            f"{summary.processed_queries}/{summary.total_queries} queries, "
            f"{len(summary.errors)} errors"
        )
        return summary

    async def _process_user(
        self,
        user: ScheduledUser,
        cycle: ScheduleType,
        now: datetime,
        priority: Optional[str],
        summary: ScheduleSummary,
    ) -> bool:
        """Submit one user's due queries. Returns False when the user was skipped."""
        quota = get_plan_quota(user.plan)

        due = [q for q in user.queries if is_due(q, cycle, now)]
        if not due:
            summary.skipped_users += 1
            return False

        # Natural list order wins; no staleness-based ordering
        capped = due[:quota.daily_runs]
        summary.total_queries += len(capped)

        result = await self.orchestrator.run_batch(
            user.id,
            query_ids=[q.id for q in capped],
            engines=list(quota.engines),
            priority=priority or quota.priority,
        )

        summary.processed_users += 1
        summary.processed_queries += result.processed_count
        logger.info(f"Processed {result.processed_count} tasks for user {user.id}")

        # Charged per submitted query, regardless of per-task outcome
        self.repository.increment_usage(user.id, len(capped))
        return True
