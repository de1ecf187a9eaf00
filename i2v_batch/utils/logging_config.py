"""
Structured logging configuration for i2v-batch

Provides centralized logging with context (batch, window, item, job) and
optional JSON formatting for production environments.
"""
import logging
import logging.handlers
import sys
import json
from pathlib import Path
from typing import List, Optional, Tuple
from datetime import datetime, timezone
from contextvars import ContextVar, Token


# Context variables for adding metadata to all logs.
# asyncio tasks copy the context on creation, so values set inside one
# item's task do not leak into its siblings.
current_batch_id: ContextVar[Optional[str]] = ContextVar('current_batch_id', default=None)
current_window: ContextVar[Optional[int]] = ContextVar('current_window', default=None)
current_item_index: ContextVar[Optional[int]] = ContextVar('current_item_index', default=None)
current_job: ContextVar[Optional[str]] = ContextVar('current_job', default=None)


class ContextFilter(logging.Filter):
    """
    Adds context information to log records

    Injects batch_id, window, item_index and job into every log record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to log record"""
        record.batch_id = current_batch_id.get()
        record.window = current_window.get()
        record.item_index = current_item_index.get()
        record.job = current_job.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON for structured logging

    Useful for production environments and log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if getattr(record, 'batch_id', None):
            log_data['batch_id'] = record.batch_id

        if getattr(record, 'window', None) is not None:
            log_data['window'] = record.window

        if getattr(record, 'item_index', None) is not None:
            log_data['item_index'] = record.item_index

        if getattr(record, 'job', None):
            log_data['job'] = record.job

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info(..., extra={...})
        if hasattr(record, 'attempt'):
            log_data['attempt'] = record.attempt

        if hasattr(record, 'elapsed'):
            log_data['elapsed'] = record.elapsed

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Formats log records with colors for console output

    Makes logs more readable during development.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors"""
        # Restored after formatting so other handlers see the plain level name
        original_levelname = record.levelname
        if original_levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[original_levelname]}{original_levelname}{self.COLORS['RESET']}"
            )

        context_parts = []
        if getattr(record, 'batch_id', None):
            context_parts.append(f"batch={record.batch_id}")

        if getattr(record, 'window', None) is not None:
            context_parts.append(f"window={record.window}")

        if getattr(record, 'item_index', None) is not None:
            context_parts.append(f"item={record.item_index}")

        if getattr(record, 'job', None):
            context_parts.append(f"job={record.job}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        try:
            formatted = super().format(record)
        finally:
            record.levelname = original_levelname

        if context_str:
            formatted = f"{formatted}{context_str}"

        return formatted


def setup_logging(
    level: str = "INFO",
    format_type: str = "colored",
    log_file: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> None:
    """
    Setup structured logging for i2v-batch

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Formatter type ("colored", "json", "simple")
        log_file: Path to log file (if enable_file_logging=True)
        enable_file_logging: Whether to write logs to file
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    context_filter = ContextFilter()
    console_handler.addFilter(context_filter)

    if format_type == "json":
        formatter = JSONFormatter()
    elif format_type == "colored":
        formatter = ColoredFormatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:  # simple
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if enable_file_logging:
        if log_file is None:
            log_file = Path("logs/i2v-batch.log")

        log_file.parent.mkdir(parents=True, exist_ok=True)

        # Rotating file handler (10 MB max, 5 backups)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setLevel(logging.DEBUG)  # Always DEBUG for file
        file_handler.addFilter(context_filter)

        # File logs are always JSON for structured analysis
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def set_context(
    batch_id: Optional[str] = None,
    window: Optional[int] = None,
    item_index: Optional[int] = None,
    job: Optional[str] = None,
) -> List[Tuple[ContextVar, Token]]:
    """
    Set logging context for current execution

    Args:
        batch_id: Batch identifier
        window: Current window number (1-based)
        item_index: Index of the item being processed
        job: Remote job / request identifier

    Returns:
        Tokens for reset_context(), covering only the values set here
    """
    tokens = []
    for var, value in (
        (current_batch_id, batch_id),
        (current_window, window),
        (current_item_index, item_index),
        (current_job, job),
    ):
        if value is not None:
            tokens.append((var, var.set(value)))
    return tokens


def reset_context(tokens: List[Tuple[ContextVar, Token]]) -> None:
    """Restore the values that a set_context() call replaced"""
    for var, token in reversed(tokens):
        var.reset(token)


def clear_context() -> None:
    """Clear all logging context"""
    current_batch_id.set(None)
    current_window.set(None)
    current_item_index.set(None)
    current_job.set(None)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
