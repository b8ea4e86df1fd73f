"""
Tests for the ActionLogger structured logger.
"""

import io
import json

from nuki_bridge.actions.action_logger import ActionLogger, LogContext, LogLevel


class TestActionLogger:
    """Test entry recording and the per-call-point helpers."""

    def setup_method(self):
        self.logger = ActionLogger(output_format="silent")

    def test_entries_are_kept_when_silent(self):
        """Test that silent output still records entries."""
        self.logger.info("hello", LogContext.DISPATCH, {"a": 1})

        assert len(self.logger.entries) == 1
        entry = self.logger.entries[0]
        assert entry.level == LogLevel.INFO
        assert entry.context == LogContext.DISPATCH
        assert entry.data == {"a": 1}

    def test_api_attempt_levels(self):
        """Test that failed attempts are warnings and successes are debug."""
        self.logger.api_attempt("get_device", "sl-1", 0, "retryable", 503)
        self.logger.api_attempt("get_device", "sl-1", 1, "success", 200)

        levels = [e.level for e in self.logger.entries]
        assert levels == [LogLevel.WARNING, LogLevel.DEBUG]
        assert self.logger.entries[0].message == "get_device attempt 1: retryable"

    def test_outcome_records_duration(self):
        """Test that an outcome after action_start carries the elapsed time."""
        self.logger.action_start("lock", "sl-1")
        self.logger.outcome("lock", "succeeded", 3)

        entry = self.logger.entries[-1]
        assert entry.level == LogLevel.SUCCESS
        assert entry.duration_ms is not None
        assert entry.data["poll_attempts"] == 3

    def test_failed_outcome_is_error(self):
        """Test that failed outcomes are logged at error level without a timer."""
        self.logger.outcome("unlock", "failed_terminal", 1)

        entry = self.logger.entries[-1]
        assert entry.level == LogLevel.ERROR
        assert entry.duration_ms is None

    def test_poll_sample_is_debug(self):
        """Test that poll samples are recorded with their classification."""
        self.logger.poll_sample("lock", 1, "transitional", 4, None, 0)

        entry = self.logger.entries[-1]
        assert entry.level == LogLevel.DEBUG
        assert entry.context == LogContext.POLL
        assert entry.data["classification"] == "transitional"


class TestOutput:
    """Test where and how entries are written."""

    def test_json_output_goes_to_stdout_by_default(self, capsys):
        """Test that JSON lines go to stdout when no stream is given."""
        logger = ActionLogger(output_format="json")
        logger.error("failed", LogContext.COMMAND, {"status_code": 500})

        line = capsys.readouterr().out.strip()
        assert json.loads(line)["context"] == "command"

    def test_json_output_to_given_stream(self, capsys):
        """Test that an explicit stream receives the output instead of stdout."""
        stream = io.StringIO()
        logger = ActionLogger(output_format="json", stream=stream)
        logger.warning("careful", LogContext.POLL)

        assert capsys.readouterr().out == ""
        assert json.loads(stream.getvalue())["level"] == "WARNING"

    def test_human_output_hides_debug_unless_enabled(self):
        """Test that human output skips debug entries outside debug mode."""
        stream = io.StringIO()
        logger = ActionLogger(output_format="human", stream=stream)
        logger.debug("hidden", LogContext.POLL)
        logger.info("shown", LogContext.POLL, {"state": 1})

        output = stream.getvalue()
        assert "hidden" not in output
        assert "[POLL] shown" in output
        assert "state" not in output

    def test_human_output_shows_data_in_debug_mode(self):
        """Test that debug mode prints the entry data under the message."""
        stream = io.StringIO()
        logger = ActionLogger(debug_mode=True, output_format="human", stream=stream)
        logger.debug("sample", LogContext.POLL, {"state": 4})

        assert "    state: 4" in stream.getvalue()

    def test_timer_context_logs_duration(self):
        """Test that timer_context logs a start and a timed completion."""
        logger = ActionLogger(output_format="silent")
        with logger.timer_context("dispatch lock"):
            pass

        start, done = logger.entries
        assert start.message == "Starting dispatch lock"
        assert done.duration_ms is not None
