"""
Scheduling

Selects due queries per user within plan quotas and runs them through the
batch orchestrator.
"""

from .plans import PlanQuota, PLAN_QUOTAS, get_plan_quota, plan_priority
from .scheduler import QueryScheduler, ScheduleSummary, ScheduleType, is_due

__all__ = [
    "PlanQuota",
    "PLAN_QUOTAS",
    "get_plan_quota",
    "plan_priority",
    "QueryScheduler",
    "ScheduleSummary",
    "ScheduleType",
    "is_due",
]
