"""Utility functions for i2v-batch"""

from i2v_batch.utils.logging_config import (
    setup_logging,
    set_context,
    clear_context,
    reset_context,
    get_logger,
)

__all__ = [
    "setup_logging",
    "set_context",
    "clear_context",
    "reset_context",
    "get_logger",
]
