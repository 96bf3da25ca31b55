"""
Batch Orchestration

Fans tracked queries out across engines with bounded concurrency.
"""

from .orchestrator import (
    BatchOrchestrator,
    BatchResult,
    ProcessingStatus,
    TaskStatus,
    run_in_batches,
    PRIORITY_BATCH_SIZES,
    DEFAULT_BATCH_DELAY,
)

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "ProcessingStatus",
    "TaskStatus",
    "run_in_batches",
    "PRIORITY_BATCH_SIZES",
    "DEFAULT_BATCH_DELAY",
]
