"""
Exception hierarchy for i2v-batch

Item-level errors (JobError and subclasses) are contained by the batch
scheduler and surface as per-item failures in the BatchReport.
BatchConfigError is systemic and always propagates to the caller.
"""
from typing import Optional


class I2VBatchError(Exception):
    """Base class for all i2v-batch errors"""


class BatchConfigError(I2VBatchError):
    """Invalid batch configuration or scheduler input"""


class JobError(I2VBatchError):
    """A single job failed while executing"""

    def __init__(self, message: str, label: Optional[str] = None):
        super().__init__(message)
        self.label = label


class JobFailedError(JobError):
    """Remote job reported FAILED, or a local job exited non-zero"""


class JobTimeoutError(JobError):
    """Job did not reach a terminal state within its time limit"""


class QueueAPIError(JobError):
    """HTTP failure while talking to the remote job queue"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        label: Optional[str] = None,
    ):
        super().__init__(message, label=label)
        self.status_code = status_code
