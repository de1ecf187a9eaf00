"""
Batch Processing Components

Retry wrapper, windowed scheduler, result aggregation and progress
tracking for batches of asynchronous jobs.
"""
from i2v_batch.batch.retry_wrapper import run_with_retry
from i2v_batch.batch.result_aggregator import build_report, build_summary, to_item_result
from i2v_batch.batch.job_progress_tracker import JobProgressTracker
from i2v_batch.batch.batch_progress_tracker import BatchProgressTracker
from i2v_batch.batch.batch_scheduler import (
    BatchScheduler,
    process_batch,
    settle_all,
)

__all__ = [
    'run_with_retry',
    'build_report',
    'build_summary',
    'to_item_result',
    'JobProgressTracker',
    'BatchProgressTracker',
    'BatchScheduler',
    'process_batch',
    'settle_all',
]
