"""
Pytest Configuration and Shared Fixtures

Provides an in-memory database, a repository over it, seeding helpers and
fake engine clients for all test modules.
"""

import pytest
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from citetrack.database.models import Base, Domain, Query, UserProfile
from citetrack.database.repository import TrackingRepository
from citetrack.engines.base import EngineClient
from citetrack.utils.timeutil import utc_now


# ============================================================================
# Fake Engines
# ============================================================================

class FakeEngineClient(EngineClient):
    """Engine client returning a canned answer (or raising a canned error)."""

    def __init__(
        self,
        engine: str,
        answer: str = "",
        error: Optional[Exception] = None,
        allows_empty_response: bool = False,
    ):
        self.engine = engine
        self.answer = answer
        self.error = error
        self.allows_empty_response = allows_empty_response
        self.prompts: List[str] = []
        self.closed = False

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer

    async def close(self):
        self.closed = True


class FakeEngineClients:
    """Stands in for EngineClients: a fixed engine -> client mapping."""

    def __init__(self, clients: Dict[str, EngineClient]):
        self._clients = dict(clients)

    def get(self, engine: str) -> Optional[EngineClient]:
        return self._clients.get(engine)

    async def close(self):
        for client in self._clients.values():
            await client.close()


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def repository(session_factory) -> TrackingRepository:
    return TrackingRepository(session_factory)


class Seeder:
    """Inserts users, domains and queries with explicit, ordered timestamps."""

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._clock = utc_now() - timedelta(days=30)
        self._count = 0

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _add(self, obj):
        db = self._session_factory()
        try:
            db.add(obj)
            db.commit()
        finally:
            db.close()
        return obj

    def user(self, plan: str = "free", usage_queries: int = 0) -> UserProfile:
        self._count += 1
        return self._add(UserProfile(
            email=f"user{self._count}@example.com",
            full_name=f"User {self._count}",
            plan=plan,
            usage_queries=usage_queries,
            created_at=self._tick(),
        ))

    def domain(self, user: UserProfile, domain: str = "acme.com") -> Domain:
        return self._add(Domain(user_id=user.id, domain=domain, created_at=self._tick()))

    def query(
        self,
        user: UserProfile,
        text: str = "What are the best running shoes?",
        engines: Optional[List[str]] = None,
        status: str = "active",
        last_run: Optional[datetime] = None,
    ) -> Query:
        return self._add(Query(
            user_id=user.id,
            query_text=text,
            engines=engines if engines is not None else ["ChatGPT", "Perplexity", "Gemini"],
            status=status,
            last_run=last_run,
            created_at=self._tick(),
        ))


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


# ============================================================================
# Engine Fixtures
# ============================================================================

CITING_ANSWER = "Acme makes great trail shoes; see acme.com for the full range."
NEUTRAL_ANSWER = "Several brands make good trail shoes, depending on your budget."


@pytest.fixture
def citing_clients() -> Dict[str, FakeEngineClient]:
    """All three engines answering with a brand mention."""
    return {
        "ChatGPT": FakeEngineClient("ChatGPT", CITING_ANSWER),
        "Perplexity": FakeEngineClient("Perplexity", CITING_ANSWER, allows_empty_response=True),
        "Gemini": FakeEngineClient("Gemini", CITING_ANSWER),
    }
