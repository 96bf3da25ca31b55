"""Citation reporting helpers."""

from .stats import CitationStats, summarize_citations, recent_activity

__all__ = [
    "CitationStats",
    "summarize_citations",
    "recent_activity",
]
