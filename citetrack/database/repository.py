"""
Repository Layer - Clean Interface for Data Operations

Provides simple methods to read tracked queries/domains and to append
citation results. Handles all SQLAlchemy complexity internally and hands
back plain dataclasses so callers never hold live ORM sessions.

Every method is one independent read or write; there are no
multi-statement transactions. SQLAlchemy failures surface as
PersistenceError.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from citetrack.detection import CitationResult
from citetrack.errors import PersistenceError
from citetrack.utils.timeutil import utc_now

from .models import Citation, Domain, Query, QueryStatus, UserProfile
from .session import get_db_context

logger = logging.getLogger(__name__)


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class TrackedQuery:
    """Detached view of a Query row."""
    id: str
    user_id: str
    query_text: str
    engines: List[str] = field(default_factory=list)
    status: str = QueryStatus.ACTIVE.value
    last_run: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class ScheduledUser:
    """User profile plus the active queries the scheduler considers."""
    id: str
    plan: Optional[str]
    usage_queries: int = 0
    queries: List[TrackedQuery] = field(default_factory=list)


@dataclass
class CitationRecord:
    """Detached view of a Citation row, with its query text."""
    id: str
    query_id: str
    user_id: str
    engine: str
    cited: bool
    position: Optional[str]
    confidence_score: float
    run_date: datetime
    query_text: Optional[str] = None


def _to_tracked(query: Query) -> TrackedQuery:
    return TrackedQuery(
        id=query.id,
        user_id=query.user_id,
        query_text=query.query_text,
        engines=list(query.engines or []),
        status=query.status,
        last_run=query.last_run,
        created_at=query.created_at,
    )


# =============================================================================
# REPOSITORY
# =============================================================================

class TrackingRepository:
    """
    Data access for the citation tracking pipeline.

    Usage:
        repo = TrackingRepository()            # global engine
        repo = TrackingRepository(factory)     # explicit session factory

        queries = repo.get_active_queries(user_id)
        repo.insert_citation(query_id, user_id, "ChatGPT", result)
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with get_db_context(self._session_factory) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Database error while trying to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}") from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_active_queries(
        self,
        user_id: str,
        query_ids: Optional[Sequence[str]] = None,
    ) -> List[TrackedQuery]:
        """Active queries for a user, optionally restricted to query_ids."""
        with self._session("load queries") as db:
            stmt = (
                select(Query)
                .where(Query.user_id == user_id)
                .where(Query.status == QueryStatus.ACTIVE.value)
                .order_by(Query.created_at)
            )
            if query_ids:
                stmt = stmt.where(Query.id.in_(list(query_ids)))

            return [_to_tracked(q) for q in db.scalars(stmt).all()]

    def get_user_domains(self, user_id: str) -> List[str]:
        """Tracked domain names for a user."""
        with self._session("load domains") as db:
            stmt = select(Domain.domain).where(Domain.user_id == user_id).order_by(Domain.created_at)
            return list(db.scalars(stmt).all())

    def get_query_owner(self, query_id: str) -> Optional[str]:
        """User id owning a query, or None if the query does not exist."""
        with self._session("look up query owner") as db:
            return db.scalar(select(Query.user_id).where(Query.id == query_id))

    def get_users_for_schedule(
        self,
        user_ids: Optional[Sequence[str]] = None,
    ) -> List[ScheduledUser]:
        """
        Users with their active queries, in creation order.

        Users without any active query are still returned (the scheduler
        counts them as skipped).
        """
        with self._session("load users") as db:
            stmt = (
                select(UserProfile)
                .options(selectinload(UserProfile.queries))
                .order_by(UserProfile.created_at)
            )
            if user_ids:
                stmt = stmt.where(UserProfile.id.in_(list(user_ids)))

            users = []
            for profile in db.scalars(stmt).all():
                active = [
                    _to_tracked(q) for q in profile.queries
                    if q.status == QueryStatus.ACTIVE.value
                ]
                users.append(ScheduledUser(
                    id=profile.id,
                    plan=profile.plan,
                    usage_queries=profile.usage_queries or 0,
                    queries=active,
                ))
            return users

    def list_citations(self, user_id: str, limit: int = 100) -> List[CitationRecord]:
        """Most recent citations for a user, newest first."""
        with self._session("load citations") as db:
            stmt = (
                select(Citation, Query.query_text)
                .join(Query, Citation.query_id == Query.id)
                .where(Citation.user_id == user_id)
                .order_by(Citation.run_date.desc())
                .limit(limit)
            )
            return [
                CitationRecord(
                    id=c.id,
                    query_id=c.query_id,
                    user_id=c.user_id,
                    engine=c.engine,
                    cited=c.cited,
                    position=c.position,
                    confidence_score=c.confidence_score,
                    run_date=c.run_date,
                    query_text=query_text,
                )
                for c, query_text in db.execute(stmt).all()
            ]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert_citation(
        self,
        query_id: str,
        user_id: str,
        engine: str,
        result: CitationResult,
        run_date: Optional[datetime] = None,
    ) -> str:
        """Append one citation row. Returns the new row id."""
        with self._session("store citation") as db:
            citation = Citation(
                query_id=query_id,
                user_id=user_id,
                engine=engine,
                response_text=result.response_text,
                cited=result.cited,
                position=result.position,
                confidence_score=result.confidence_score,
                run_date=run_date or utc_now(),
            )
            db.add(citation)
            db.flush()
            logger.debug(f"Stored {engine} citation {citation.id} for query {query_id}")
            return citation.id

    def touch_query_last_run(self, query_id: str, when: Optional[datetime] = None) -> None:
        """Set a query's last_run timestamp."""
        with self._session("update query last_run") as db:
            db.execute(
                update(Query)
                .where(Query.id == query_id)
                .values(last_run=when or utc_now())
            )

    def increment_usage(self, user_id: str, amount: int) -> None:
        """Add to a user's cumulative submitted-query counter in one statement."""
        with self._session("update usage counter") as db:
            db.execute(
                update(UserProfile)
                .where(UserProfile.id == user_id)
                .values(usage_queries=UserProfile.usage_queries + amount)
            )
