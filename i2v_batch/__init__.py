"""
i2v-batch - batch orchestration for image-to-video generation jobs

Submits many image inputs to a remote generative-video queue (or a local
fallback script) with:
- Bounded concurrency in paced windows
- Fixed-delay retry per item
- Per-item success/failure reporting
- Live progress for long-running queued jobs
"""

__version__ = "1.0.0"

# Batch exports
from i2v_batch.batch import (
    BatchScheduler,
    BatchProgressTracker,
    JobProgressTracker,
    process_batch,
    run_with_retry,
)

# Model exports
from i2v_batch.models import (
    AttemptOutcome,
    ItemResult,
    BatchSummary,
    BatchReport,
    JobStatus,
    StatusEvent,
    ProgressState,
)

# Config exports
from i2v_batch.schemas import BatchConfig, load_and_validate_batch_config

# Event exports
from i2v_batch.core.events import EventBus, Event, EventType

# Runner exports
from i2v_batch.runners import QueueClient, QueueJobExecutor, SubprocessExecutor

# Logging exports
from i2v_batch.utils.logging_config import setup_logging

# Error exports
from i2v_batch.errors import (
    I2VBatchError,
    BatchConfigError,
    JobError,
    JobFailedError,
    JobTimeoutError,
    QueueAPIError,
)

__all__ = [
    "__version__",
    # Batch
    "BatchScheduler",
    "BatchProgressTracker",
    "JobProgressTracker",
    "process_batch",
    "run_with_retry",
    # Models
    "AttemptOutcome",
    "ItemResult",
    "BatchSummary",
    "BatchReport",
    "JobStatus",
    "StatusEvent",
    "ProgressState",
    # Config
    "BatchConfig",
    "load_and_validate_batch_config",
    # Events
    "EventBus",
    "Event",
    "EventType",
    # Runners
    "QueueClient",
    "QueueJobExecutor",
    "SubprocessExecutor",
    # Logging
    "setup_logging",
    # Errors
    "I2VBatchError",
    "BatchConfigError",
    "JobError",
    "JobFailedError",
    "JobTimeoutError",
    "QueueAPIError",
]
