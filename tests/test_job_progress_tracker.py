"""
Tests for the Job Progress Tracker

Tests the QUEUED -> IN_PROGRESS -> COMPLETED/FAILED state machine,
heartbeat throttling, log line handling and terminal behaviour.
"""
import logging

import pytest

from i2v_batch.batch.job_progress_tracker import JobProgressTracker
from i2v_batch.models.progress import JobStatus, LogEntry, StatusEvent


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return JobProgressTracker(task_name="Item 1", heartbeat_interval=10.0, clock=clock)


@pytest.fixture
def messages(caplog):
    """Function returning the tracker's log messages so far"""
    caplog.set_level(logging.DEBUG, logger="i2v_batch")

    def _messages(min_level=logging.INFO):
        return [
            r.getMessage()
            for r in caplog.records
            if r.name == "i2v_batch.batch.job_progress_tracker" and r.levelno >= min_level
        ]

    return _messages


class TestQueuedState:
    """Tests for QUEUED handling"""

    def test_initial_state(self, tracker):
        """Test that a new tracker starts queued and non-terminal"""
        assert tracker.state.status == JobStatus.QUEUED
        assert tracker.is_terminal is False

    def test_logs_position_changes_only(self, tracker, messages):
        """Test that repeated positions are logged once"""
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 5})
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 5})
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 4})

        logged = messages()
        assert len(logged) == 2
        assert "Queued (Position: 5)" in logged[0]
        assert "Queued (Position: 4)" in logged[1]
        assert tracker.state.queue_position == 4

    def test_heartbeat_while_position_unchanged(self, tracker, clock, messages):
        """Test that an unchanged position is re-logged once the interval passes"""
        tracker.on_status_update({"status": "QUEUED", "queue_position": 3})
        clock.advance(5)
        tracker.on_status_update({"status": "QUEUED", "queue_position": 3})
        clock.advance(6)
        tracker.on_status_update({"status": "QUEUED", "queue_position": 3})

        assert len(messages()) == 2

    def test_unknown_position(self, tracker, messages):
        """Test that a missing position is shown as Unknown"""
        tracker.on_status_update({"status": "IN_QUEUE"})

        assert "Position: Unknown" in messages()[0]

    def test_elapsed_prefix(self, tracker, clock, messages):
        """Test that log lines carry elapsed seconds"""
        clock.advance(12.4)
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 1})

        assert messages()[0].startswith("[12s] Item 1")


class TestInProgressState:
    """Tests for IN_PROGRESS handling"""

    def test_heartbeat_on_entry_then_throttled(self, tracker, clock, messages):
        """Test that Processing... is logged on entry and at most once per interval"""
        tracker.on_status_update({"status": "IN_PROGRESS"})
        clock.advance(3)
        tracker.on_status_update({"status": "IN_PROGRESS"})
        clock.advance(3)
        tracker.on_status_update({"status": "IN_PROGRESS"})
        clock.advance(5)
        tracker.on_status_update({"status": "IN_PROGRESS"})

        heartbeats = [m for m in messages() if "Processing..." in m]
        assert len(heartbeats) == 2

    def test_logs_info_and_progress_lines_only(self, tracker, messages):
        """Test that only info/progress log lines are surfaced"""
        tracker.on_status_update({
            "status": "IN_PROGRESS",
            "logs": [
                {"level": "info", "message": "Loading model"},
                {"level": "debug", "message": "tensor shapes"},
                {"level": "PROGRESS", "message": "Frame 10/48"},
            ],
        })

        logged = messages()
        assert any("Loading model" in m for m in logged)
        assert any("Frame 10/48" in m for m in logged)
        assert not any("tensor shapes" in m for m in logged)
        assert len(tracker.state.logs) == 3

    def test_incremental_logs_accumulate(self, tracker, messages):
        """Test that incremental log batches are each logged"""
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [{"level": "info", "message": "a"}]})
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [{"level": "info", "message": "b"}]})

        assert [e.message for e in tracker.state.logs] == ["a", "b"]

    def test_cumulative_logs_not_repeated(self, clock, messages):
        """Test that full-log polling does not re-log old lines"""
        tracker = JobProgressTracker("Item 2", clock=clock, cumulative_logs=True)
        line_a = {"level": "info", "message": "step a"}
        line_b = {"level": "info", "message": "step b"}

        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [line_a]})
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [line_a, line_b]})
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [line_a, line_b]})

        logged = messages()
        assert sum("step a" in m for m in logged) == 1
        assert sum("step b" in m for m in logged) == 1
        assert [e.message for e in tracker.state.logs] == ["step a", "step b"]

    def test_accepts_status_event_objects(self, tracker, messages):
        """Test that StatusEvent instances work as well as dicts"""
        tracker.on_status_update(
            StatusEvent(status=JobStatus.IN_PROGRESS, logs=(LogEntry("info", "rendering"),))
        )

        assert tracker.state.status == JobStatus.IN_PROGRESS
        assert any("rendering" in m for m in messages())


class TestTerminalStates:
    """Tests for COMPLETED / FAILED handling"""

    def test_completed_logged_once(self, tracker, messages):
        """Test that completion is logged and later events are ignored"""
        tracker.on_status_update({"status": "IN_PROGRESS"})
        tracker.on_status_update({"status": "COMPLETED"})
        tracker.on_status_update({"status": "COMPLETED"})
        tracker.on_status_update({"status": "IN_PROGRESS"})

        completed = [m for m in messages() if "Completed!" in m]
        assert len(completed) == 1
        assert tracker.is_terminal is True
        assert tracker.state.status == JobStatus.COMPLETED

    def test_failed_logged_at_error(self, tracker, caplog, messages):
        """Test that failure is logged at error level"""
        tracker.on_status_update({"status": "FAILED"})

        assert any("Failed!" in m for m in messages(min_level=logging.ERROR))
        assert tracker.is_terminal is True

    def test_full_lifecycle(self, tracker, clock, messages):
        """Test the usual queued -> progress -> completed sequence"""
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 2})
        clock.advance(4)
        tracker.on_status_update({"status": "IN_QUEUE", "queue_position": 0})
        clock.advance(4)
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": [{"level": "info", "message": "Generating"}]})
        clock.advance(30)
        tracker.on_status_update({"status": "COMPLETED"})

        logged = messages()
        assert "Position: 2" in logged[0]
        assert "Position: 0" in logged[1]
        assert "Processing..." in logged[2]
        assert "Generating" in logged[3]
        assert logged[4] == "[38s] Item 1 - Completed!"


class TestUnknownInput:
    """Tests for forward compatibility and robustness"""

    def test_unknown_status_logged_generically(self, tracker, messages):
        """Test that an unrecognised status is logged and kept raw"""
        tracker.on_status_update({"status": "CANCELLED"})

        assert any("Item 1 - CANCELLED" in m for m in messages())
        assert tracker.state.status == "CANCELLED"
        assert tracker.is_terminal is False

    def test_unrecognised_event_type_ignored(self, tracker):
        """Test that junk input does not raise"""
        tracker.on_status_update(None)
        tracker.on_status_update("IN_PROGRESS")

        assert tracker.state.status == JobStatus.QUEUED

    def test_as_handler(self, tracker):
        """Test that as_handler returns a usable callback"""
        handler = tracker.as_handler()
        handler({"status": "COMPLETED"})

        assert tracker.is_terminal is True

    def test_malformed_logs_do_not_raise(self, tracker, messages):
        """Test that a non-list logs value is tolerated"""
        tracker.on_status_update({"status": "IN_PROGRESS", "logs": 5})
        tracker.on_status_update({"status": "COMPLETED", "logs": 1})

        assert tracker.state.status == JobStatus.COMPLETED
        assert any("Completed!" in m for m in messages())

    def test_unparseable_event_ignored(self, tracker, messages):
        """Test that an event that cannot be parsed is logged at debug and dropped"""
        tracker.on_status_update({"status": "IN_QUEUE", "logs": [BrokenText()]})

        assert tracker.state.status == JobStatus.QUEUED
        assert any("malformed status event" in m for m in messages(min_level=logging.DEBUG))


class BrokenText:
    """Log line whose text conversion fails"""

    def __str__(self):
        raise RuntimeError("unprintable")
