"""
Citation Statistics

Summaries over a user's recent citation checks: visibility score, per-engine
counts, and a short activity feed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from citetrack.database.repository import CitationRecord


@dataclass
class CitationStats:
    total: int = 0
    cited: int = 0
    uncited: int = 0
    visibility_score: int = 0  # Percentage of checks that cited the brand
    engine_stats: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "cited": self.cited,
            "uncited": self.uncited,
            "visibilityScore": self.visibility_score,
            "engineStats": dict(self.engine_stats),
        }


def summarize_citations(citations: Sequence[CitationRecord]) -> CitationStats:
    """Aggregate counts over a list of citation checks."""
    total = len(citations)
    cited = sum(1 for c in citations if c.cited)

    engine_stats: Dict[str, int] = {}
    for citation in citations:
        engine_stats[citation.engine] = engine_stats.get(citation.engine, 0) + 1

    return CitationStats(
        total=total,
        cited=cited,
        uncited=total - cited,
        visibility_score=round(cited / total * 100) if total else 0,
        engine_stats=engine_stats,
    )


def recent_activity(citations: Sequence[CitationRecord], limit: int = 10) -> List[Dict[str, Any]]:
    """Newest-first activity entries, one per citation check."""
    activity = []
    for citation in list(citations)[:limit]:
        if citation.cited:
            message = f'New citation found for "{citation.query_text}"'
        else:
            message = f'Brand missing from "{citation.query_text}" query'
        activity.append({
            "id": citation.id,
            "type": "citation" if citation.cited else "missing",
            "message": message,
            "engine": citation.engine,
            "time": citation.run_date.isoformat() if citation.run_date else None,
            "status": "positive" if citation.cited else "negative",
        })
    return activity
