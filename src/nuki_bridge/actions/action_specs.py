"""
Goal table for every controllable action.
"""

from nuki_bridge.actions.models import ActionSpec, DeviceFamily, LockAction, OpenerAction

LOCKED_STATES = frozenset({1})
UNLOCKED_STATES = frozenset({3, 5, 6})
RTO_ACTIVE_STATES = frozenset({2, 3})
DOOR_MODE = 2
CONTINUOUS_MODE = 3

LOCK = ActionSpec(
    name="lock",
    family=DeviceFamily.LOCK,
    action_code=LockAction.LOCK,
    goal_states=LOCKED_STATES,
)

UNLOCK = ActionSpec(
    name="unlock",
    family=DeviceFamily.LOCK,
    action_code=LockAction.UNLOCK,
    goal_states=UNLOCKED_STATES,
)

# The latch springs back within seconds, so "unlocked" also counts while
# polling, but only once the lock has left a starting "unlocked" state.
UNLATCH = ActionSpec(
    name="unlatch",
    family=DeviceFamily.LOCK,
    action_code=LockAction.UNLATCH,
    goal_states=frozenset({5}),
    poll_goal_states=frozenset({5, 3}),
)

ACTIVATE_RTO = ActionSpec(
    name="activate_rto",
    family=DeviceFamily.OPENER,
    action_code=OpenerAction.ACTIVATE_RTO,
    goal_states=RTO_ACTIVE_STATES,
)

DEACTIVATE_RTO = ActionSpec(
    name="deactivate_rto",
    family=DeviceFamily.OPENER,
    action_code=OpenerAction.DEACTIVATE_RTO,
    goal_states=frozenset({1}),
)

ACTIVATE_CONTINUOUS_MODE = ActionSpec(
    name="activate_continuous_mode",
    family=DeviceFamily.OPENER,
    action_code=OpenerAction.ACTIVATE_CONTINUOUS_MODE,
    goal_mode=CONTINUOUS_MODE,
)

DEACTIVATE_CONTINUOUS_MODE = ActionSpec(
    name="deactivate_continuous_mode",
    family=DeviceFamily.OPENER,
    action_code=OpenerAction.DEACTIVATE_CONTINUOUS_MODE,
    goal_mode=DOOR_MODE,
)

ELECTRIC_STRIKE = ActionSpec(
    name="electric_strike",
    family=DeviceFamily.OPENER,
    action_code=OpenerAction.ELECTRIC_STRIKE_ACTUATION,
    fire_and_forget=True,
)

# toggle name -> (spec whose goal decides the side, spec when satisfied, spec otherwise)
TOGGLES: dict[str, tuple[ActionSpec, ActionSpec, ActionSpec]] = {
    "toggle_lock": (LOCK, UNLOCK, LOCK),
    "toggle_rto": (ACTIVATE_RTO, DEACTIVATE_RTO, ACTIVATE_RTO),
    "toggle_continuous_mode": (
        ACTIVATE_CONTINUOUS_MODE,
        DEACTIVATE_CONTINUOUS_MODE,
        ACTIVATE_CONTINUOUS_MODE,
    ),
}
