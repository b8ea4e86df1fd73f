"""
Maps device snapshots to semantic categories per device family.
"""

from enum import Enum

from nuki_bridge.actions.models import ActionSpec, DeviceFamily, DeviceSnapshot


class Classification(Enum):
    GOAL = "goal"
    TRANSITIONAL = "transitional"
    BLOCKING_ERROR = "blocking_error"
    OTHER_TERMINAL = "other_terminal"
    OFFLINE = "offline"


TRANSITIONAL_STATES: dict[DeviceFamily, frozenset[int]] = {
    DeviceFamily.LOCK: frozenset({2, 4, 7}),
    DeviceFamily.OPENER: frozenset({6, 7}),
}

BLOCKING_ERROR_STATES: dict[DeviceFamily, frozenset[int]] = {
    DeviceFamily.LOCK: frozenset({254}),
    DeviceFamily.OPENER: frozenset(),
}

# Nuki "type" field values
DEVICE_TYPE_FAMILIES: dict[int, DeviceFamily] = {
    0: DeviceFamily.LOCK,
    2: DeviceFamily.OPENER,
    3: DeviceFamily.LOCK,
    4: DeviceFamily.LOCK,
    5: DeviceFamily.LOCK,
}

LOCK_STATE_NAMES = {
    0: "uncalibrated",
    1: "locked",
    2: "unlocking",
    3: "unlocked",
    4: "locking",
    5: "unlatched",
    6: "unlocked (lock 'n' go)",
    7: "unlatching",
    254: "motor blocked",
    255: "undefined",
}

OPENER_STATE_NAMES = {
    0: "untrained",
    1: "online",
    2: "ring to open active (pending)",
    3: "ring to open active",
    5: "open",
    6: "opening",
    7: "closing",
    253: "boot run",
    255: "undefined",
}

OPENER_MODE_NAMES = {
    2: "door mode",
    3: "continuous mode",
}


def classify(
    snapshot: DeviceSnapshot, spec: ActionSpec, accept_spring_back: bool = True
) -> Classification:
    """
    Classify a polled snapshot against the action's goal.

    Mode-based actions have no transitional carve-out: any non-goal mode is
    OTHER_TERMINAL. With ``accept_spring_back`` False, a spring-back state
    (unlatch settling back to unlocked) is OTHER_TERMINAL instead of GOAL.
    """
    if not snapshot.online:
        return Classification.OFFLINE
    if spec.poll_satisfied(snapshot, accept_spring_back):
        return Classification.GOAL
    if snapshot.state in BLOCKING_ERROR_STATES[spec.family]:
        return Classification.BLOCKING_ERROR
    if spec.mode_based:
        return Classification.OTHER_TERMINAL
    if snapshot.state in TRANSITIONAL_STATES[spec.family]:
        return Classification.TRANSITIONAL
    return Classification.OTHER_TERMINAL


def family_for_type(device_type: int | None) -> DeviceFamily | None:
    if device_type is None:
        return None
    return DEVICE_TYPE_FAMILIES.get(device_type)


def state_name(family: DeviceFamily, state: int | None) -> str | None:
    if state is None:
        return None
    names = LOCK_STATE_NAMES if family == DeviceFamily.LOCK else OPENER_STATE_NAMES
    return names.get(state, "unknown")


def mode_name(family: DeviceFamily, mode: int | None) -> str | None:
    if mode is None or family != DeviceFamily.OPENER:
        return None
    return OPENER_MODE_NAMES.get(mode, "unknown")
