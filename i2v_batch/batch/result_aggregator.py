"""
Result Aggregator - folds settled item outcomes into a BatchReport
"""
from typing import Sequence

from i2v_batch.models.results import (
    AttemptOutcome,
    BatchReport,
    BatchSummary,
    ItemResult,
    describe_error,
)


def to_item_result(index: int, outcome: AttemptOutcome) -> ItemResult:
    """Convert one settled outcome into the item's final result"""
    if outcome.succeeded:
        return ItemResult(index=index, success=True, data=outcome.value)
    return ItemResult(index=index, success=False, error=describe_error(outcome.error))


def build_summary(outcomes: Sequence[AttemptOutcome]) -> BatchSummary:
    """
    Count successes and failures

    success_rate is a percentage; an empty batch has a rate of 0.
    """
    total = len(outcomes)
    successful = sum(1 for outcome in outcomes if outcome.succeeded)
    success_rate = (successful / total * 100) if total > 0 else 0.0

    return BatchSummary(
        total=total,
        successful=successful,
        failed=total - successful,
        success_rate=success_rate,
    )


def build_report(outcomes: Sequence[AttemptOutcome]) -> BatchReport:
    """
    Build the final report from outcomes in original index order

    Args:
        outcomes: One settled outcome per item; position is the item index

    Returns:
        BatchReport with one ItemResult per outcome
    """
    results = tuple(to_item_result(index, outcome) for index, outcome in enumerate(outcomes))
    return BatchReport(results=results, summary=build_summary(outcomes))
