"""
Retry Wrapper - bounded retry with fixed backoff for a single job

Wraps one executor call. Transient failures are retried after a fixed
delay; once the attempts are exhausted the last error is re-raised and
the scheduler records it against that item only.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable

from i2v_batch.errors import BatchConfigError
from i2v_batch.models.results import describe_error

logger = logging.getLogger(__name__)


async def run_with_retry(
    executor: Callable[[], Awaitable[Any]],
    label: str,
    max_attempts: int,
    retry_delay_ms: int,
) -> Any:
    """
    Execute an async call with fixed-delay retry

    Args:
        executor: Zero-argument callable returning an awaitable
        label: Name used in log lines (e.g. "Item 3")
        max_attempts: Maximum number of attempts (1 means no retry)
        retry_delay_ms: Fixed delay in milliseconds before each retry

    Returns:
        The value from the first successful attempt

    Raises:
        BatchConfigError: If max_attempts < 1 or retry_delay_ms < 0
        Exception: The error of the final attempt once all attempts fail
    """
    if max_attempts < 1:
        raise BatchConfigError(f"max_attempts must be >= 1, got {max_attempts}")
    if retry_delay_ms < 0:
        raise BatchConfigError(f"retry_delay_ms must be >= 0, got {retry_delay_ms}")

    retry_delay = retry_delay_ms / 1000

    for attempt in range(1, max_attempts + 1):
        logger.info(
            f"{label} - Attempt {attempt}/{max_attempts}",
            extra={'attempt': attempt},
        )
        try:
            result = await executor()
        except Exception as e:
            logger.warning(
                f"{label} - Attempt {attempt} failed: {describe_error(e)}",
                extra={'attempt': attempt},
            )

            if attempt >= max_attempts:
                logger.error(f"{label} - All {max_attempts} attempts failed")
                raise

            logger.info(f"{label} - Retrying in {retry_delay:g}s...")
            await asyncio.sleep(retry_delay)
            continue

        if attempt > 1:
            logger.info(f"{label} - Succeeded on attempt {attempt}")
        return result

    # Loop always returns or raises
    raise RuntimeError(f"{label} - retry loop exited without a result")
