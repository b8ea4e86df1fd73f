"""
Maps verification outcomes to the JSON-ready response shape.
"""

from datetime import datetime, timezone
from typing import Any, Callable

from nuki_bridge.actions.messages import MessageCatalog
from nuki_bridge.actions.models import (
    ActionSpec,
    AlreadySatisfied,
    CommandRejected,
    DeviceFamily,
    DeviceSnapshot,
    ErrorInfo,
    FailedTerminal,
    FailedUnreachable,
    Succeeded,
    VerificationOutcome,
)
from nuki_bridge.actions.state_classifier import mode_name, state_name


class ResultFormatter:
    def __init__(
        self,
        catalog: MessageCatalog | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.catalog = catalog or MessageCatalog()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def format_outcome(
        self, spec: ActionSpec, outcome: VerificationOutcome
    ) -> dict[str, Any]:
        """Format any outcome variant. Failures carry their error."""
        if isinstance(outcome, AlreadySatisfied):
            success, key = True, "goal-already-active"
        elif isinstance(outcome, Succeeded):
            success = True
            key = "command-accepted" if spec.fire_and_forget else "action-succeeded"
        elif isinstance(outcome, FailedTerminal):
            success, key = False, outcome.message_key
        elif isinstance(outcome, FailedUnreachable):
            success, key = False, outcome.message_key
        elif isinstance(outcome, CommandRejected):
            success, key = False, outcome.error.message_key
        else:
            raise TypeError(f"Unknown outcome: {outcome!r}")

        result = self._base(success, key, spec.family, getattr(outcome, "snapshot", None))
        result.update(
            {
                "action": spec.name,
                "outcome": outcome.kind,
                "attempts": outcome.poll_attempts,
            }
        )
        error = getattr(outcome, "error", None)
        if error is not None:
            result["error"] = error.model_dump()
        return result

    def format_status(
        self, family: DeviceFamily, snapshot: DeviceSnapshot
    ) -> dict[str, Any]:
        key = "status-ok" if snapshot.online else "device-offline"
        result = self._base(snapshot.online, key, family, snapshot)
        result["online"] = snapshot.online
        return result

    def format_error(self, error: ErrorInfo) -> dict[str, Any]:
        """Format an error raised before any outcome existed."""
        return {
            "success": False,
            "message_key": error.message_key,
            "message": self.catalog.get(error.message_key),
            "attempts": 0,
            "error": error.model_dump(),
            "timestamp": self._clock().isoformat(),
        }

    def _base(
        self,
        success: bool,
        key: str,
        family: DeviceFamily,
        snapshot: DeviceSnapshot | None,
    ) -> dict[str, Any]:
        state = snapshot.state if snapshot else None
        mode = snapshot.mode if snapshot else None
        return {
            "success": success,
            "message_key": key,
            "message": self.catalog.get(key),
            "device_name": snapshot.name if snapshot else None,
            "state": state,
            "state_name": state_name(family, state),
            "mode": mode,
            "mode_name": mode_name(family, mode),
            "battery_critical": snapshot.battery_critical if snapshot else None,
            "timestamp": self._clock().isoformat(),
        }
