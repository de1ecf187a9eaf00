"""
Tests for structured logging configuration
"""
import json
import logging

import pytest

from i2v_batch.utils.logging_config import (
    ColoredFormatter,
    ContextFilter,
    JSONFormatter,
    clear_context,
    current_batch_id,
    current_job,
    reset_context,
    set_context,
    setup_logging,
)


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("i2v_batch.test", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def fresh_context():
    clear_context()
    yield
    clear_context()


class TestContextFilter:
    def test_injects_context(self):
        set_context(batch_id="b-1", window=2, item_index=3, job="req-9")
        record = make_record()

        assert ContextFilter().filter(record) is True
        assert record.batch_id == "b-1"
        assert record.window == 2
        assert record.item_index == 3
        assert record.job == "req-9"

    def test_empty_context(self):
        record = make_record()
        ContextFilter().filter(record)

        assert record.batch_id is None
        assert record.item_index is None

    def test_set_context_keeps_unspecified(self):
        set_context(batch_id="b-1")
        set_context(item_index=0)
        record = make_record()
        ContextFilter().filter(record)

        assert record.batch_id == "b-1"
        assert record.item_index == 0

    def test_reset_restores_previous_values(self):
        set_context(batch_id="outer", job="req-1")
        tokens = set_context(batch_id="inner")

        reset_context(tokens)

        assert current_batch_id.get() == "outer"
        assert current_job.get() == "req-1"

    def test_set_context_only_tokens_for_given_values(self):
        assert len(set_context(window=3)) == 1
        assert set_context() == []


class TestJSONFormatter:
    def test_fields(self):
        record = make_record(
            "Item 1 - Attempt 2/3", batch_id="b-1", window=1, item_index=0, job=None, attempt=2
        )

        data = json.loads(JSONFormatter().format(record))

        assert data['level'] == "INFO"
        assert data['message'] == "Item 1 - Attempt 2/3"
        assert data['batch_id'] == "b-1"
        assert data['window'] == 1
        assert data['item_index'] == 0
        assert data['attempt'] == 2
        assert 'job' not in data


class TestColoredFormatter:
    def test_adds_context_and_restores_levelname(self):
        record = make_record(batch_id="b-1", window=None, item_index=4, job=None)
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")

        formatted = formatter.format(record)

        assert "hello" in formatted
        assert formatted.endswith("[batch=b-1, item=4]")
        assert "\033[32m" in formatted
        assert record.levelname == "INFO"


class TestSetupLogging:
    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        yield root
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_handler(self, restore_root):
        setup_logging(level="WARNING", format_type="json")

        assert restore_root.level == logging.WARNING
        assert len(restore_root.handlers) == 1
        assert isinstance(restore_root.handlers[0].formatter, JSONFormatter)

    def test_file_logging(self, restore_root, tmp_path):
        log_file = tmp_path / "logs" / "batch.log"

        setup_logging(level="INFO", format_type="simple", log_file=log_file, enable_file_logging=True)
        set_context(batch_id="b-7")
        logging.getLogger("i2v_batch.test").info("written to file")
        for handler in restore_root.handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        data = json.loads(lines[-1])
        assert data['message'] == "written to file"
        assert data['batch_id'] == "b-7"
