"""Immutable models for i2v-batch"""

from i2v_batch.models.results import (
    AttemptOutcome,
    ItemResult,
    BatchSummary,
    BatchReport,
    describe_error,
)
from i2v_batch.models.progress import (
    JobStatus,
    LogEntry,
    StatusEvent,
    ProgressState,
    TERMINAL_STATUSES,
    normalize_status,
)

__all__ = [
    "AttemptOutcome",
    "ItemResult",
    "BatchSummary",
    "BatchReport",
    "describe_error",
    "JobStatus",
    "LogEntry",
    "StatusEvent",
    "ProgressState",
    "TERMINAL_STATUSES",
    "normalize_status",
]
