"""
Plan Quotas

Read-only limits per subscription tier. Unknown or missing plans get the
free tier's limits.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from citetrack.database.models import ALL_ENGINES, PlanTier


@dataclass(frozen=True)
class PlanQuota:
    """Limits for one plan tier."""
    plan: str
    queries: int            # Total query volume per month
    daily_runs: int         # Queries submitted per scheduling cycle
    engines: Tuple[str, ...]
    priority: str           # Orchestration priority


PLAN_QUOTAS: Dict[str, PlanQuota] = {
    PlanTier.FREE.value: PlanQuota(
        plan=PlanTier.FREE.value,
        queries=50,
        daily_runs=5,
        engines=("ChatGPT",),
        priority="low",
    ),
    PlanTier.PRO.value: PlanQuota(
        plan=PlanTier.PRO.value,
        queries=1000,
        daily_runs=50,
        engines=tuple(ALL_ENGINES),
        priority="normal",
    ),
    PlanTier.AGENCY.value: PlanQuota(
        plan=PlanTier.AGENCY.value,
        queries=10000,
        daily_runs=200,
        engines=tuple(ALL_ENGINES),
        priority="high",
    ),
}


def get_plan_quota(plan: Optional[str]) -> PlanQuota:
    """Quota for a plan name; falls back to free."""
    return PLAN_QUOTAS.get((plan or "").lower(), PLAN_QUOTAS[PlanTier.FREE.value])


def plan_priority(plan: Optional[str]) -> str:
    """agency -> high, pro -> normal, everything else -> low."""
    return get_plan_quota(plan).priority

