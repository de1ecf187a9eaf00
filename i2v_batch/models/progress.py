"""
Progress models for asynchronous remote jobs

A remote job moves QUEUED -> IN_PROGRESS -> COMPLETED | FAILED. Status
events arrive from the job's status stream in the wire form

    {"status": "IN_QUEUE", "queue_position": 3,
     "logs": [{"level": "info", "message": "..."}]}
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class JobStatus(str, Enum):
    """Remote job status"""

    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Status names used by queue services that differ from ours
_STATUS_ALIASES = {
    "IN_QUEUE": JobStatus.QUEUED,
    "PENDING": JobStatus.QUEUED,
    "RUNNING": JobStatus.IN_PROGRESS,
    "ERROR": JobStatus.FAILED,
}


def normalize_status(raw: Any) -> Union[JobStatus, str]:
    """
    Map a raw status value onto JobStatus

    Unrecognised values are returned as the raw string so callers can
    still log them.
    """
    if isinstance(raw, JobStatus):
        return raw

    text = str(raw).strip().upper() if raw is not None else "UNKNOWN"
    if text in _STATUS_ALIASES:
        return _STATUS_ALIASES[text]
    try:
        return JobStatus(text)
    except ValueError:
        return str(raw) if raw is not None else "UNKNOWN"


@dataclass(frozen=True)
class LogEntry:
    """One log line reported by a remote job"""

    level: str
    message: str

    @classmethod
    def from_dict(cls, data: Any) -> LogEntry:
        if isinstance(data, LogEntry):
            return data
        if isinstance(data, dict):
            return cls(
                level=str(data.get('level') or 'info'),
                message=str(data.get('message', '')),
            )
        return cls(level='info', message=str(data))


@dataclass(frozen=True)
class StatusEvent:
    """One status update from a job's status stream"""

    status: Union[JobStatus, str]
    queue_position: Optional[int] = None
    logs: Tuple[LogEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StatusEvent:
        """
        Build an event from its wire form

        Args:
            data: Dictionary with 'status' and optional 'queue_position'
                  and 'logs'

        Returns:
            StatusEvent with a normalised status
        """
        position = data.get('queue_position')
        if position is not None:
            try:
                position = int(position)
            except (TypeError, ValueError):
                position = None

        return cls(
            status=normalize_status(data.get('status')),
            queue_position=position,
            logs=_parse_logs(data.get('logs')),
        )


def _parse_logs(raw: Any) -> Tuple[LogEntry, ...]:
    """Log lines from a wire 'logs' value; a lone line or junk is tolerated"""
    if not raw:
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(LogEntry.from_dict(entry) for entry in raw)
    if isinstance(raw, (dict, str)):
        return (LogEntry.from_dict(raw),)
    return ()


@dataclass(frozen=True)
class ProgressState:
    """
    Current state of one in-flight job as seen by its tracker

    queue_position is meaningful while QUEUED; logs accumulates the
    lines received while IN_PROGRESS.
    """

    status: Union[JobStatus, str] = JobStatus.QUEUED
    queue_position: Optional[int] = None
    logs: Tuple[LogEntry, ...] = field(default_factory=tuple)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
