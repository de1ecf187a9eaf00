"""
Tests for the batch-level progress display
"""
import io
import logging

import pytest
from rich.console import Console

from i2v_batch.batch.batch_progress_tracker import BatchProgressTracker


class TestPlainMode:
    """Tests for log-line output"""

    def test_counts_and_rate(self):
        tracker = BatchProgressTracker(total_items=4, use_rich=False)
        tracker.start()

        tracker.update_item_completed(0, True)
        tracker.update_item_completed(1, False, "timeout")
        tracker.update_item_completed(2, True)

        assert tracker.finished_items == 3
        assert tracker.success_rate == pytest.approx(66.666, rel=1e-3)
        assert tracker.last_error == "Item 2: timeout"

    def test_logs_progress(self, caplog):
        caplog.set_level(logging.INFO, logger="i2v_batch")
        tracker = BatchProgressTracker(total_items=2, batch_name="Scenes", use_rich=False)

        tracker.start()
        tracker.update_window_started(1, 1, 2)
        tracker.update_item_completed(0, True)
        tracker.update_item_completed(1, False, "bad image")
        tracker.stop()

        assert "Processing 2 items: Scenes" in caplog.text
        assert "Processing window 1/1 (2 items)" in caplog.text
        assert "Item 2 failed: bad image (2/2)" in caplog.text
        assert "1 successful, 1 failed of 2" in caplog.text

    def test_empty_rate(self):
        assert BatchProgressTracker(total_items=0, use_rich=False).success_rate == 0.0

    def test_estimate(self):
        tracker = BatchProgressTracker(total_items=4, use_rich=False)
        assert tracker.get_estimated_time_remaining() is None

        tracker.start()
        tracker.update_item_completed(0, True)

        assert tracker.get_estimated_time_remaining() >= 0


class TestRichMode:
    """Tests for the live rich display"""

    def test_renders_summary(self):
        output = io.StringIO()
        console = Console(file=output, force_terminal=False, width=100)
        tracker = BatchProgressTracker(total_items=2, batch_name="Scenes", console=console)

        tracker.start()
        tracker.update_window_started(1, 1, 2)
        tracker.update_item_completed(0, True)
        tracker.update_item_completed(1, False, "[bad] markup")
        tracker.stop()

        text = output.getvalue()
        assert "Batch Summary" in text
        assert "50.0%" in text
        assert tracker.live is None

    def test_stop_without_start(self):
        console = Console(file=io.StringIO())
        tracker = BatchProgressTracker(total_items=1, console=console)

        tracker.stop()

        assert console.file.getvalue() == ""
