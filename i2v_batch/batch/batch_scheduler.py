"""
Batch Scheduler - windowed concurrent execution with retry and pacing

Items are split into consecutive windows of `concurrency` items. Each
window runs concurrently, every item through the retry wrapper, and the
scheduler waits for the whole window to settle before sleeping the
inter-window cooldown and moving on. Item failures never abort the
batch; they end up in the report.
"""
from __future__ import annotations

import asyncio
import logging
import math
import uuid
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    Optional,
    Sequence,
)

from i2v_batch.batch.batch_progress_tracker import BatchProgressTracker
from i2v_batch.batch.result_aggregator import build_report, to_item_result
from i2v_batch.batch.retry_wrapper import run_with_retry
from i2v_batch.core.events import EventBus, EventType
from i2v_batch.models.results import AttemptOutcome, BatchReport
from i2v_batch.schemas.batch_config import BatchConfig
from i2v_batch.utils.logging_config import reset_context, set_context

logger = logging.getLogger(__name__)

# (item, index) -> awaitable result
JobExecutor = Callable[[Any, int], Awaitable[Any]]
SettledCallback = Callable[[int, AttemptOutcome], Awaitable[None]]


async def settle_all(
    calls: Sequence[Awaitable[Any]],
    on_settled: Optional[SettledCallback] = None,
) -> List[AttemptOutcome]:
    """
    Join barrier: wait for every call and collect all outcomes

    Unlike a plain gather, one failure does not short-circuit the rest;
    each call settles to an AttemptOutcome in its original position.

    Args:
        calls: Awaitables to run concurrently
        on_settled: Optional async callback(position, outcome) invoked as
            soon as each call settles; its errors are logged, not raised

    Returns:
        One AttemptOutcome per call, in input order
    """

    async def settle(position: int, call: Awaitable[Any]) -> AttemptOutcome:
        try:
            outcome = AttemptOutcome.success(await call)
        except Exception as e:
            outcome = AttemptOutcome.failure(e)

        if on_settled is not None:
            try:
                await on_settled(position, outcome)
            except Exception as e:
                logger.error(f"Settle callback failed for position {position}: {e}", exc_info=True)
        return outcome

    return list(await asyncio.gather(*(settle(i, call) for i, call in enumerate(calls))))


class BatchScheduler:
    """
    Runs a work list through a job executor in paced concurrency windows
    """

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        """
        Initialize scheduler

        Args:
            config: Batch settings (defaults to BatchConfig())
            event_bus: Optional bus receiving batch lifecycle events
        """
        self.config = config or BatchConfig()
        self.event_bus = event_bus

    async def process_batch(
        self,
        items: Iterable[Any],
        executor: JobExecutor,
        progress: Optional[BatchProgressTracker] = None,
        batch_id: Optional[str] = None,
        **overrides: Any,
    ) -> BatchReport:
        """
        Process every item and report per-item outcomes

        Args:
            items: Work items; identified only by their position
            executor: Async callable (item, index) -> result; must raise on failure
            progress: Optional live display fed as items settle
            batch_id: Identifier used in logs and events (generated if omitted)
            **overrides: BatchConfig fields overriding the scheduler's config
                for this call (e.g. concurrency=4, retry_delay_ms=0)

        Returns:
            BatchReport with results in original index order

        Raises:
            TypeError: If items is not iterable or executor is not callable
            BatchConfigError: If the effective configuration is invalid
        """
        if not callable(executor):
            raise TypeError(f"executor must be callable, got {type(executor).__name__}")
        if items is None or isinstance(items, (str, bytes)):
            raise TypeError(f"items must be a collection of work items, got {type(items).__name__}")
        try:
            work = list(items)
        except TypeError as e:
            raise TypeError(f"items must be iterable, got {type(items).__name__}") from e

        config = self.config.with_overrides(**overrides)
        batch_id = batch_id or uuid.uuid4().hex[:8]
        concurrency = config.concurrency
        total = len(work)
        total_windows = math.ceil(total / concurrency)

        outcomes: List[Optional[AttemptOutcome]] = [None] * total

        context_tokens = set_context(batch_id=batch_id)
        try:
            logger.info(f"Processing {total} items in windows of {concurrency}")
            await self._emit(
                EventType.BATCH_STARTED,
                batch_id,
                total=total,
                concurrency=concurrency,
                windows=total_windows,
            )

            if progress is not None:
                progress.start()
            try:
                await self._run_windows(work, executor, config, batch_id, progress, outcomes)
            finally:
                if progress is not None:
                    progress.stop()

            report = build_report(outcomes)
            summary = report.summary
            logger.info(
                f"Batch processing completed: {summary.successful} successful, "
                f"{summary.failed} failed"
            )
            await self._emit(EventType.BATCH_COMPLETED, batch_id, **summary.to_dict())
            return report
        finally:
            reset_context(context_tokens)

    async def _run_windows(
        self,
        work: List[Any],
        executor: JobExecutor,
        config: BatchConfig,
        batch_id: str,
        progress: Optional[BatchProgressTracker],
        outcomes: List[Optional[AttemptOutcome]],
    ) -> None:
        """Run every window in turn, filling outcomes in index order"""
        concurrency = config.concurrency
        total = len(work)
        total_windows = math.ceil(total / concurrency)

        for window_number, start in enumerate(range(0, total, concurrency), start=1):
            window = work[start:start + concurrency]

            logger.info(
                f"Processing window {window_number}/{total_windows} ({len(window)} items)"
            )
            if progress is not None:
                progress.update_window_started(window_number, total_windows, len(window))
            await self._emit(
                EventType.WINDOW_STARTED,
                batch_id,
                window=window_number,
                indices=list(range(start, start + len(window))),
            )

            async def on_settled(position: int, outcome: AttemptOutcome, _start: int = start) -> None:
                await self._record_outcome(_start + position, outcome, batch_id, progress)

            settled = await settle_all(
                [
                    self._run_item(executor, item, start + offset, window_number, config)
                    for offset, item in enumerate(window)
                ],
                on_settled=on_settled,
            )
            outcomes[start:start + len(window)] = settled

            await self._emit(EventType.WINDOW_COMPLETED, batch_id, window=window_number)

            is_last_window = start + concurrency >= total
            if not is_last_window and config.inter_batch_delay_ms > 0:
                logger.info(f"Waiting {config.inter_batch_delay_s:g}s before next window...")
                await asyncio.sleep(config.inter_batch_delay_s)

    async def _run_item(
        self,
        executor: JobExecutor,
        item: Any,
        index: int,
        window_number: int,
        config: BatchConfig,
    ) -> Any:
        """Run one item through the retry wrapper"""
        # Runs inside its own task, so this context stays with this item
        set_context(item_index=index, window=window_number)
        return await run_with_retry(
            lambda: executor(item, index),
            label=f"Item {index + 1}",
            max_attempts=config.retry_attempts,
            retry_delay_ms=config.retry_delay_ms,
        )

    async def _record_outcome(
        self,
        index: int,
        outcome: AttemptOutcome,
        batch_id: str,
        progress: Optional[BatchProgressTracker],
    ) -> None:
        result = to_item_result(index, outcome)

        if progress is not None:
            progress.update_item_completed(index, result.success, result.error)

        if result.success:
            await self._emit(EventType.ITEM_COMPLETED, batch_id, index=index, data=result.data)
        else:
            await self._emit(EventType.ITEM_FAILED, batch_id, index=index, error=result.error)

    async def _emit(self, event_type: EventType, batch_id: str, **data: Any) -> None:
        if self.event_bus is None:
            return
        await self.event_bus.emit(event_type, batch_id=batch_id, **data)


async def process_batch(
    items: Iterable[Any],
    fn: JobExecutor,
    concurrency: Optional[int] = None,
    delay_between_batches: Optional[int] = None,
    retry_attempts: Optional[int] = None,
    retry_delay: Optional[int] = None,
    config: Optional[BatchConfig] = None,
    event_bus: Optional[EventBus] = None,
    progress: Optional[BatchProgressTracker] = None,
) -> BatchReport:
    """
    Convenience function to process a batch with one call

    Args:
        items: Work items
        fn: Async callable (item, index) -> result
        concurrency: Items per window
        delay_between_batches: Cooldown between windows in milliseconds
        retry_attempts: Maximum attempts per item
        retry_delay: Fixed delay before each retry in milliseconds
        config: Base configuration (defaults to BatchConfig())
        event_bus: Optional bus for lifecycle events
        progress: Optional live display

    Returns:
        BatchReport

    Example:
        async def animate(image_path, index):
            return await generator.generate(image_path)

        report = await process_batch(images, animate, concurrency=2, retry_attempts=3)
        print(report.summary.success_rate)
    """
    scheduler = BatchScheduler(config=config, event_bus=event_bus)
    return await scheduler.process_batch(
        items,
        fn,
        progress=progress,
        concurrency=concurrency,
        inter_batch_delay_ms=delay_between_batches,
        retry_attempts=retry_attempts,
        retry_delay_ms=retry_delay,
    )
