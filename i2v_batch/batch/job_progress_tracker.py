"""
Job Progress Tracker - live feedback for one asynchronous remote job

Remote video jobs can sit in a queue and then run for minutes. The
tracker consumes the job's status stream and logs what changed:

    QUEUED(position) -> IN_PROGRESS(logs) -> COMPLETED | FAILED

It is observability only. It never raises on odd input and never
changes the job's outcome.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple, Union

from i2v_batch.models.progress import (
    JobStatus,
    LogEntry,
    ProgressState,
    StatusEvent,
)

logger = logging.getLogger(__name__)

# Remote log levels worth surfacing to the user
VISIBLE_LOG_LEVELS = frozenset({"info", "progress"})

DEFAULT_HEARTBEAT_INTERVAL = 10.0


class JobProgressTracker:
    """
    Tracks status transitions for a single in-flight job

    Attach on_status_update (or as_handler()) to the job executor's status
    stream. One tracker per job; discard it once the job is terminal.
    """

    def __init__(
        self,
        task_name: str = "Task",
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        cumulative_logs: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize tracker

        Args:
            task_name: Name shown in every log line
            heartbeat_interval: Minimum seconds between repeated
                "still queued" / "processing" lines
            cumulative_logs: True if each event carries the job's full log
                so far (polling APIs), False if it carries only new lines
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.task_name = task_name
        self.heartbeat_interval = heartbeat_interval
        self.cumulative_logs = cumulative_logs
        self._clock = clock

        self.start_time = clock()
        self._state = ProgressState()
        self._seen_log_count = 0
        self._last_logged_position: Optional[int] = None
        self._last_queue_log: Optional[float] = None
        self._last_heartbeat: Optional[float] = None

    @property
    def state(self) -> ProgressState:
        """Current progress state"""
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    def elapsed(self) -> int:
        """Whole seconds since the tracker was created"""
        return int(self._clock() - self.start_time)

    def as_handler(self) -> Callable[[Any], None]:
        """Return the status callback for collaborators that take a function"""
        return self.on_status_update

    def on_status_update(self, event: Union[StatusEvent, Dict[str, Any]]) -> None:
        """
        Consume one status event

        Args:
            event: StatusEvent or its wire-form dictionary
        """
        if isinstance(event, dict):
            try:
                event = StatusEvent.from_dict(event)
            except Exception as e:
                logger.debug(f"{self.task_name} - Ignoring malformed status event {event!r}: {e}")
                return
        elif not isinstance(event, StatusEvent):
            logger.debug(f"{self.task_name} - Ignoring unrecognised status event: {event!r}")
            return

        if self._state.is_terminal:
            logger.debug(
                f"{self.task_name} - Ignoring {event.status} after terminal "
                f"{self._state.status}"
            )
            return

        now = self._clock()
        elapsed = int(now - self.start_time)
        status = event.status

        if status == JobStatus.QUEUED:
            self._on_queued(event, now, elapsed)
        elif status == JobStatus.IN_PROGRESS:
            self._on_in_progress(event, now, elapsed)
        elif status == JobStatus.COMPLETED:
            self._state = ProgressState(status=JobStatus.COMPLETED, logs=self._state.logs)
            logger.info(f"[{elapsed}s] {self.task_name} - Completed!")
        elif status == JobStatus.FAILED:
            self._state = ProgressState(status=JobStatus.FAILED, logs=self._state.logs)
            logger.error(f"[{elapsed}s] {self.task_name} - Failed!")
        else:
            self._state = ProgressState(
                status=status,
                queue_position=self._state.queue_position,
                logs=self._state.logs,
            )
            logger.info(f"[{elapsed}s] {self.task_name} - {status}")

    def _on_queued(self, event: StatusEvent, now: float, elapsed: int) -> None:
        position = event.queue_position
        self._state = ProgressState(status=JobStatus.QUEUED, queue_position=position)

        position_changed = (
            self._last_queue_log is None or position != self._last_logged_position
        )
        heartbeat_due = (
            self._last_queue_log is not None
            and now - self._last_queue_log >= self.heartbeat_interval
        )
        if not (position_changed or heartbeat_due):
            return

        shown = position if position is not None else "Unknown"
        logger.info(f"[{elapsed}s] {self.task_name} - Queued (Position: {shown})")
        self._last_logged_position = position
        self._last_queue_log = now

    def _on_in_progress(self, event: StatusEvent, now: float, elapsed: int) -> None:
        entering = self._state.status != JobStatus.IN_PROGRESS
        new_logs = self._take_new_logs(event.logs)

        self._state = ProgressState(
            status=JobStatus.IN_PROGRESS,
            logs=(self._state.logs if not entering else ()) + new_logs,
        )

        if entering or (
            self._last_heartbeat is not None
            and now - self._last_heartbeat >= self.heartbeat_interval
        ):
            logger.info(f"[{elapsed}s] {self.task_name} - Processing...")
            self._last_heartbeat = now

        for entry in new_logs:
            if entry.level.lower() in VISIBLE_LOG_LEVELS:
                logger.info(f"   {entry.message}")

    def _take_new_logs(self, logs: Tuple[LogEntry, ...]) -> Tuple[LogEntry, ...]:
        """Lines not seen before, according to the log delivery mode"""
        if not self.cumulative_logs:
            return tuple(logs)

        if len(logs) < self._seen_log_count:
            # Remote side restarted its log; treat everything as new
            self._seen_log_count = 0

        new_logs = tuple(logs[self._seen_log_count:])
        self._seen_log_count = len(logs)
        return new_logs
