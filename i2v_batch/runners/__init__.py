"""Job executors for i2v-batch"""

from i2v_batch.runners.queue_client import QueueClient, QueueHandle
from i2v_batch.runners.queue_executor import QueueJobExecutor
from i2v_batch.runners.subprocess_executor import SubprocessExecutor, SubprocessResult

__all__ = [
    "QueueClient",
    "QueueHandle",
    "QueueJobExecutor",
    "SubprocessExecutor",
    "SubprocessResult",
]
