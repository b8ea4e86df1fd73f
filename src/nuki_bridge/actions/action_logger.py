"""
Structured logging for device actions.

Records every HTTP attempt, poll sample and terminal outcome with context and
timing. Output is human-readable, JSON lines, or silent; entries are always
retained in memory so callers and tests can inspect a request's trace.
"""

import json
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TextIO


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class LogContext(Enum):
    API_CALL = "api_call"
    PRECHECK = "precheck"
    COMMAND = "command"
    POLL = "poll"
    OUTCOME = "outcome"
    DISPATCH = "dispatch"


LEVEL_MARKERS = {
    LogLevel.DEBUG: "🔍",
    LogLevel.INFO: "ℹ️",
    LogLevel.WARNING: "⚠️",
    LogLevel.ERROR: "❌",
    LogLevel.SUCCESS: "✅",
}

# terminal outcome kinds logged at SUCCESS level
SUCCESSFUL_OUTCOMES = ("succeeded", "already_satisfied")


@dataclass
class LogEntry:
    timestamp: datetime
    level: LogLevel
    context: LogContext
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "context": self.context.value,
            "message": self.message,
            "data": self.data,
            "duration_ms": self.duration_ms,
        }

    def to_line(self, with_data: bool = False) -> str:
        clock = self.timestamp.strftime("%H:%M:%S.%f")[:-3]
        took = f" ({self.duration_ms:.0f}ms)" if self.duration_ms else ""
        line = (
            f"{LEVEL_MARKERS[self.level]} {clock} "
            f"[{self.context.value.upper()}] {self.message}{took}"
        )
        if with_data:
            for key, value in self.data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, indent=2)
                line += f"\n    {key}: {value}"
        return line


class ActionLogger:
    """
    Structured logger injected into the API client and the engine.

    ``stream`` defaults to stdout. Processes whose stdout carries a protocol
    (the MCP stdio transport) must pass stderr or use ``output_format="silent"``.
    """

    def __init__(
        self,
        debug_mode: bool = False,
        output_format: str = "human",
        stream: Optional[TextIO] = None,
    ):
        self.debug_mode = debug_mode
        self.output_format = output_format  # "human", "json", "silent"
        self.stream = stream
        self.entries: list[LogEntry] = []
        self._timers: dict[str, float] = {}

    def _log(
        self,
        level: LogLevel,
        context: LogContext,
        message: str,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            context=context,
            message=message,
            data=data or {},
            duration_ms=duration_ms,
        )
        self.entries.append(entry)
        self._write(entry)

    def _write(self, entry: LogEntry):
        if self.output_format == "json":
            line = json.dumps(entry.to_dict())
        elif self.output_format == "human":
            if entry.level == LogLevel.DEBUG and not self.debug_mode:
                return
            line = entry.to_line(with_data=self.debug_mode)
        else:
            return
        # resolved per write so a replaced sys.stdout is honoured
        print(line, file=self.stream or sys.stdout)

    def debug(
        self,
        message: str,
        context: LogContext = LogContext.OUTCOME,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        self._log(LogLevel.DEBUG, context, message, data, duration_ms)

    def info(
        self,
        message: str,
        context: LogContext = LogContext.OUTCOME,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        self._log(LogLevel.INFO, context, message, data, duration_ms)

    def warning(
        self,
        message: str,
        context: LogContext = LogContext.OUTCOME,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        self._log(LogLevel.WARNING, context, message, data, duration_ms)

    def error(
        self,
        message: str,
        context: LogContext = LogContext.OUTCOME,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        self._log(LogLevel.ERROR, context, message, data, duration_ms)

    def success(
        self,
        message: str,
        context: LogContext = LogContext.OUTCOME,
        data: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ):
        self._log(LogLevel.SUCCESS, context, message, data, duration_ms)

    # Call points used by the client and the engine
    def api_attempt(
        self,
        operation: str,
        device_id: str,
        attempt: int,
        outcome: str,
        status_code: int | None = None,
    ):
        """Log one HTTP attempt against the device API."""
        level = LogLevel.DEBUG if outcome == "success" else LogLevel.WARNING
        self._log(
            level,
            LogContext.API_CALL,
            f"{operation} attempt {attempt + 1}: {outcome}",
            {
                "operation": operation,
                "device_id": device_id,
                "attempt": attempt,
                "outcome": outcome,
                "status_code": status_code,
            },
        )

    def action_start(self, action: str, device_id: str):
        self.info(
            f"Action started: {action}",
            LogContext.PRECHECK,
            {"action": action, "device_id": device_id},
        )
        self._timers[f"action_{action}"] = time.time()

    def poll_sample(
        self,
        action: str,
        poll_attempt: int,
        classification: str,
        state: int | None,
        mode: int | None,
        failure_budget: int,
    ):
        """Log the classification of one poll sample."""
        self.debug(
            f"Poll {poll_attempt} for {action}: {classification}",
            LogContext.POLL,
            {
                "action": action,
                "poll_attempt": poll_attempt,
                "classification": classification,
                "state": state,
                "mode": mode,
                "failure_budget": failure_budget,
            },
        )

    def outcome(self, action: str, kind: str, poll_attempts: int):
        """Log the terminal outcome of an action with the elapsed time."""
        started = self._timers.pop(f"action_{action}", None)
        duration = (time.time() - started) * 1000 if started is not None else None
        level = LogLevel.SUCCESS if kind in SUCCESSFUL_OUTCOMES else LogLevel.ERROR
        self._log(
            level,
            LogContext.OUTCOME,
            f"Action '{action}' finished: {kind}",
            {"action": action, "outcome": kind, "poll_attempts": poll_attempts},
            duration_ms=duration,
        )

    @contextmanager
    def timer_context(
        self, operation_name: str, context: LogContext = LogContext.DISPATCH
    ):
        """Log the start and duration of a block."""
        start_time = time.time()
        self.debug(f"Starting {operation_name}", context)
        try:
            yield
        finally:
            duration = (time.time() - start_time) * 1000
            self.debug(f"Completed {operation_name}", context, duration_ms=duration)
