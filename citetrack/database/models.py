"""
SQLAlchemy Models for Citetrack

Tables:
1. user_profiles - account, plan tier and cumulative query usage
2. domains       - tracked brand domains (source of brand keywords)
3. queries       - tracked natural-language questions
4. citations     - append-only time series of engine checks

Identifiers are UUID strings so they travel unchanged through the JSON API.
"""

import enum
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, Index, CheckConstraint, JSON,
)
from sqlalchemy.orm import declarative_base, relationship

from citetrack.utils.timeutil import utc_now

Base = declarative_base()


def _new_id() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class Engine(enum.Enum):
    """AI answer engines we track. Values are the wire/engine labels."""
    CHATGPT = "ChatGPT"
    PERPLEXITY = "Perplexity"
    GEMINI = "Gemini"


ALL_ENGINES = [e.value for e in Engine]


class PlanTier(enum.Enum):
    """Subscription tiers"""
    FREE = "free"
    PRO = "pro"
    AGENCY = "agency"


class QueryStatus(enum.Enum):
    """Lifecycle of a tracked query"""
    ACTIVE = "active"
    PAUSED = "paused"
    DELETED = "deleted"


# =============================================================================
# CORE TABLES
# =============================================================================

class UserProfile(Base):
    """Account profile with plan tier and usage counter"""
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255))

    # Plan is kept as a plain string: unknown tiers fall back to free limits
    plan = Column(String(20), default=PlanTier.FREE.value, nullable=False)
    usage_queries = Column(Integer, default=0, nullable=False)  # Submitted queries, all time

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    domains = relationship("Domain", back_populates="user", cascade="all, delete-orphan")
    queries = relationship(
        "Query",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Query.created_at",
    )

    def __repr__(self):
        return f"<UserProfile {self.email} ({self.plan})>"


class Domain(Base):
    """Brand domain tracked for a user"""
    __tablename__ = "domains"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False)
    domain = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utc_now)

    user = relationship("UserProfile", back_populates="domains")

    __table_args__ = (
        Index("idx_domain_user", "user_id"),
    )


class Query(Base):
    """A tracked question, run against one or more engines"""
    __tablename__ = "queries"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False)
    domain_id = Column(String(36), ForeignKey("domains.id"), nullable=True)

    query_text = Column(Text, nullable=False)
    engines = Column(JSON, default=lambda: list(ALL_ENGINES))  # Subset of ALL_ENGINES
    status = Column(String(20), default=QueryStatus.ACTIVE.value, nullable=False)
    last_run = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    user = relationship("UserProfile", back_populates="queries")
    citations = relationship("Citation", back_populates="query")

    __table_args__ = (
        Index("idx_query_user_status", "user_id", "status"),
    )


class Citation(Base):
    """
    One engine's answer to one query at one point in time.

    Append-only: never updated, and duplicate runs simply add rows.
    """
    __tablename__ = "citations"

    id = Column(String(36), primary_key=True, default=_new_id)
    query_id = Column(String(36), ForeignKey("queries.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False)

    engine = Column(String(50), nullable=False)
    response_text = Column(Text, nullable=False, default="")

    cited = Column(Boolean, default=False, nullable=False)
    position = Column(String(10), nullable=True)  # top, middle, bottom
    confidence_score = Column(Float, default=0.0, nullable=False)

    run_date = Column(DateTime, default=utc_now, nullable=False)
    created_at = Column(DateTime, default=utc_now)

    query = relationship("Query", back_populates="citations")

    __table_args__ = (
        CheckConstraint(
            "(cited AND position IS NOT NULL) OR (NOT cited AND position IS NULL)",
            name="ck_citation_position_matches_cited",
        ),
        CheckConstraint(
            "confidence_score >= 0 AND confidence_score <= 1",
            name="ck_citation_confidence_range",
        ),
        Index("idx_citation_user_date", "user_id", "run_date"),
        Index("idx_citation_query_engine", "query_id", "engine"),
    )
