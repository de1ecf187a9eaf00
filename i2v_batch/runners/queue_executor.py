"""
Queue Job Executor - runs one work item as a remote queued job

Submits the item, polls its status until it is terminal and feeds every
status to a JobProgressTracker so long jobs give live feedback. Plug an
instance straight into BatchScheduler.process_batch as the executor.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from i2v_batch.batch.job_progress_tracker import JobProgressTracker
from i2v_batch.errors import JobFailedError, JobTimeoutError
from i2v_batch.models.progress import JobStatus, normalize_status
from i2v_batch.runners.queue_client import QueueClient
from i2v_batch.schemas.batch_config import BatchConfig
from i2v_batch.utils.logging_config import set_context

logger = logging.getLogger(__name__)


class QueueJobExecutor:
    """
    Async job executor backed by a remote queue

    Blocking HTTP calls run in worker threads (asyncio.to_thread) so a
    window of jobs can be polled concurrently.
    """

    def __init__(
        self,
        client: QueueClient,
        model_id: str,
        build_payload: Optional[Callable[[Any], Dict[str, Any]]] = None,
        poll_interval: float = 2.0,
        max_polls: int = 900,
        heartbeat_interval: float = 10.0,
    ):
        """
        Initialize executor

        Args:
            client: Queue client
            model_id: Model path to submit to
            build_payload: Maps a work item to the model's JSON input
                (default: the item itself, which must be a dict)
            poll_interval: Seconds between status polls
            max_polls: Polls before giving up with JobTimeoutError
            heartbeat_interval: Tracker heartbeat interval in seconds
        """
        self.client = client
        self.model_id = model_id
        self.build_payload = build_payload
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.heartbeat_interval = heartbeat_interval

    @classmethod
    def from_config(
        cls,
        client: QueueClient,
        model_id: str,
        config: BatchConfig,
        **kwargs: Any,
    ) -> "QueueJobExecutor":
        """
        Create an executor whose trackers use the batch's heartbeat interval

        Args:
            client: Queue client
            model_id: Model path to submit to
            config: Batch settings (heartbeat_interval_s is used)
            **kwargs: Other constructor arguments (build_payload, poll_interval, ...)
        """
        kwargs.setdefault('heartbeat_interval', config.heartbeat_interval_s)
        return cls(client, model_id, **kwargs)

    def _payload_for(self, item: Any) -> Dict[str, Any]:
        if self.build_payload is not None:
            return self.build_payload(item)
        if not isinstance(item, dict):
            raise TypeError(
                f"Work item must be a dict when no build_payload is given, got {type(item).__name__}"
            )
        return item

    async def __call__(self, item: Any, index: int) -> Dict[str, Any]:
        """
        Run one item to completion

        Returns:
            The job's result payload

        Raises:
            JobFailedError: If the job reports FAILED
            JobTimeoutError: If the job is not terminal after max_polls polls
            QueueAPIError: On HTTP failures
        """
        label = f"Item {index + 1}"
        payload = self._payload_for(item)

        handle = await asyncio.to_thread(self.client.submit, self.model_id, payload)
        set_context(job=handle.request_id)

        tracker = JobProgressTracker(
            task_name=label,
            heartbeat_interval=self.heartbeat_interval,
            cumulative_logs=True,
        )

        for poll in range(1, self.max_polls + 1):
            data = await asyncio.to_thread(self.client.status, handle)
            if not isinstance(data, dict):
                logger.warning(f"{label} - Unexpected status response: {data!r}")
                data = {}

            # The tracker only observes; the job outcome comes from the raw status
            tracker.on_status_update(data)
            status = normalize_status(data.get('status'))

            if status == JobStatus.COMPLETED:
                return await asyncio.to_thread(self.client.result, handle)

            if status == JobStatus.FAILED:
                reason = data.get('error') or data.get('detail') or "remote job failed"
                raise JobFailedError(f"Job {handle.request_id} failed: {reason}", label=label)

            if poll < self.max_polls:
                await asyncio.sleep(self.poll_interval)

        raise JobTimeoutError(
            f"Job {handle.request_id} not finished after "
            f"{self.max_polls * self.poll_interval:g}s",
            label=label,
        )
