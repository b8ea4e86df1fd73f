from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class DeviceFamily(str, Enum):
    LOCK = "LockDevice"
    OPENER = "OpenerDevice"


class LockAction(IntEnum):
    UNLOCK = 1
    LOCK = 2
    UNLATCH = 3
    LOCK_N_GO = 4
    LOCK_N_GO_UNLATCH = 5


class OpenerAction(IntEnum):
    ACTIVATE_RTO = 1
    DEACTIVATE_RTO = 2
    ELECTRIC_STRIKE_ACTUATION = 3
    ACTIVATE_CONTINUOUS_MODE = 4
    DEACTIVATE_CONTINUOUS_MODE = 5


class DeviceIdentity(BaseModel):
    """Configured device id plus the family it is expected to belong to."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    family: DeviceFamily


class DeviceSnapshot(BaseModel):
    """One observation of device state. Each poll produces a new snapshot."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    name: str | None = None
    device_type: int | None = None
    state: int | None = None
    mode: int | None = None
    battery_critical: bool = False
    taken_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def online(self) -> bool:
        return self.state is not None

    @classmethod
    def from_api(cls, device_id: str, payload: Any) -> "DeviceSnapshot":
        """
        Build a snapshot from a ``GET /smartlock/{id}`` body.

        State and mode live inside the nested ``state`` object. A body without
        a valid integer ``state.state`` yields an offline snapshot.
        """
        if not isinstance(payload, dict):
            return cls(device_id=device_id)

        nested = payload.get("state")
        if not isinstance(nested, dict):
            nested = {}

        return cls(
            device_id=device_id,
            name=payload.get("name") if isinstance(payload.get("name"), str) else None,
            device_type=_as_int(payload.get("type")),
            state=_as_int(nested.get("state")),
            mode=_as_int(nested.get("mode")),
            battery_critical=nested.get("batteryCritical") is True,
        )


def _as_int(value: Any) -> int | None:
    # bool is an int subclass; a flag is never a valid code
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class ActionSpec(BaseModel):
    """
    How one action is verified.

    ``goal_states`` is checked before any command is sent. ``poll_goal_states``
    (defaults to ``goal_states``) is checked while polling. ``goal_mode`` makes
    the action mode-based. ``fire_and_forget`` skips polling entirely.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    family: DeviceFamily
    action_code: int
    goal_states: frozenset[int] = frozenset()
    poll_goal_states: frozenset[int] | None = None
    goal_mode: int | None = None
    fire_and_forget: bool = False

    @property
    def mode_based(self) -> bool:
        return self.goal_mode is not None

    def precheck_satisfied(self, snapshot: DeviceSnapshot) -> bool:
        if self.fire_and_forget:
            return False
        if self.mode_based:
            return snapshot.mode == self.goal_mode
        return snapshot.state in self.goal_states

    @property
    def spring_back_states(self) -> frozenset[int]:
        """States accepted while polling that do not satisfy the precheck."""
        return (self.poll_goal_states or self.goal_states) - self.goal_states

    def poll_satisfied(
        self, snapshot: DeviceSnapshot, accept_spring_back: bool = True
    ) -> bool:
        if self.mode_based:
            return snapshot.mode == self.goal_mode
        if snapshot.state in self.goal_states:
            return True
        return accept_spring_back and snapshot.state in self.spring_back_states


class ActionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    device: DeviceIdentity
    spec: ActionSpec


class ErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    message_key: str
    detail: str = ""
    stage: Literal["request", "config", "precheck", "dispatch", "poll"]
    status_code: int | None = None

    @classmethod
    def from_exception(cls, error: Exception, stage: str) -> "ErrorInfo":
        return cls(
            kind=getattr(error, "kind", type(error).__name__),
            message_key=getattr(error, "message_key", "internal-error"),
            detail=str(error),
            stage=stage,
            status_code=getattr(error, "status_code", None),
        )


# Verification outcomes


class AlreadySatisfied(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["already_satisfied"] = "already_satisfied"
    snapshot: DeviceSnapshot
    poll_attempts: int = 0


class Succeeded(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["succeeded"] = "succeeded"
    snapshot: DeviceSnapshot | None = None
    poll_attempts: int


class FailedTerminal(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed_terminal"] = "failed_terminal"
    snapshot: DeviceSnapshot
    poll_attempts: int
    message_key: str = "goal-not-reached"
    error: ErrorInfo | None = None


class FailedUnreachable(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed_unreachable"] = "failed_unreachable"
    poll_attempts: int
    message_key: str = "device-offline"
    error: ErrorInfo | None = None


class CommandRejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["command_rejected"] = "command_rejected"
    error: ErrorInfo
    snapshot: DeviceSnapshot | None = None
    poll_attempts: int = 0


VerificationOutcome = Union[
    AlreadySatisfied, Succeeded, FailedTerminal, FailedUnreachable, CommandRejected
]
