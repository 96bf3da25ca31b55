"""
Citetrack Database Layer

Usage:
    from citetrack.database import init_db, TrackingRepository

    init_db()
    repo = TrackingRepository()
    queries = repo.get_active_queries(user_id)
"""

# Models
from .models import (
    Base,
    UserProfile,
    Domain,
    Query,
    Citation,
    # Enums
    Engine,
    PlanTier,
    QueryStatus,
    ALL_ENGINES,
)

# Session management
from .session import (
    get_database_url,
    create_db_engine,
    get_engine,
    get_session_factory,
    get_db_context,
    init_db,
    check_db_connection,
)

# Repository
from .repository import (
    TrackingRepository,
    TrackedQuery,
    ScheduledUser,
    CitationRecord,
)

__all__ = [
    # Models
    "Base",
    "UserProfile",
    "Domain",
    "Query",
    "Citation",
    "Engine",
    "PlanTier",
    "QueryStatus",
    "ALL_ENGINES",
    # Session
    "get_database_url",
    "create_db_engine",
    "get_engine",
    "get_session_factory",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Repository
    "TrackingRepository",
    "TrackedQuery",
    "ScheduledUser",
    "CitationRecord",
]
