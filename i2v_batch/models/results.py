"""
Immutable result models for batch execution

An AttemptOutcome is what the retry wrapper settles to for one item.
ItemResult and BatchReport are derived from those outcomes and never
mutated after creation.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Tuple


UNKNOWN_ERROR = "Unknown error"


def describe_error(error: Optional[BaseException]) -> str:
    """Human-readable message for a final item error"""
    if error is None:
        return UNKNOWN_ERROR
    try:
        message = str(error)
    except Exception:
        message = ""
    return message if message else type(error).__name__


@dataclass(frozen=True)
class AttemptOutcome:
    """
    Settled outcome of one work item

    Holds either the executor's return value or the final error after
    all retries were exhausted.
    """

    succeeded: bool
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Any) -> AttemptOutcome:
        return cls(succeeded=True, value=value)

    @classmethod
    def failure(cls, error: Optional[BaseException]) -> AttemptOutcome:
        return cls(succeeded=False, error=error)


@dataclass(frozen=True)
class ItemResult:
    """Final outcome for one item, keyed by its position in the input"""

    index: int
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchSummary:
    """Success/failure counts for one batch"""

    total: int
    successful: int
    failed: int
    success_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchReport:
    """
    Report for one batch invocation

    results are in original index order; summary is derived entirely
    from results.
    """

    results: Tuple[ItemResult, ...]
    summary: BatchSummary

    def failed_results(self) -> List[ItemResult]:
        """Items that exhausted their retries"""
        return [r for r in self.results if not r.success]

    def successful_results(self) -> List[ItemResult]:
        return [r for r in self.results if r.success]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary"""
        return {
            'results': [r.to_dict() for r in self.results],
            'summary': self.summary.to_dict(),
        }
