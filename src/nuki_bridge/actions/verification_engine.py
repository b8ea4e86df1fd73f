"""
Action-verification engine.

The device API acknowledges an action before the device performs it. The
engine turns that acknowledgment into a real result: it reads the current
state, skips the command if the goal already holds, sends the command, then
polls and classifies snapshots until the goal is reached, a blocking error is
seen, or the budgets run out.
"""

import asyncio
from typing import Protocol

from nuki_bridge.actions.action_logger import ActionLogger, LogContext
from nuki_bridge.actions.action_specs import TOGGLES
from nuki_bridge.actions.errors import (
    DeviceBlockingError,
    DeviceOffline,
    DeviceTypeMismatch,
    GoalNotReached,
    NukiBridgeError,
    TransportError,
)
from nuki_bridge.actions.models import (
    ActionRequest,
    ActionSpec,
    AlreadySatisfied,
    CommandRejected,
    DeviceIdentity,
    DeviceSnapshot,
    ErrorInfo,
    FailedTerminal,
    FailedUnreachable,
    Succeeded,
    VerificationOutcome,
)
from nuki_bridge.actions.retry import SleepFunc, delay_for_attempt
from nuki_bridge.actions.state_classifier import Classification, classify, family_for_type
from nuki_bridge.actions.verification_config import VerificationConfig, VerificationState


class DeviceClient(Protocol):
    async def send_action(self, device_id: str, action: int) -> None: ...

    async def query_state(self, device_id: str) -> DeviceSnapshot: ...


class ActionVerificationEngine:
    """Runs one action request at a time; holds no state between requests."""

    def __init__(
        self,
        client: DeviceClient,
        config: VerificationConfig | None = None,
        logger: ActionLogger | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.config = config or VerificationConfig()
        self.logger = logger or ActionLogger(output_format="silent")
        self._sleep = sleep

    async def execute(self, request: ActionRequest) -> VerificationOutcome:
        """Precheck, dispatch and verify a single action."""
        self.logger.action_start(request.spec.name, request.device.device_id)

        precheck = await self._precheck(request.device, request.spec)
        if isinstance(precheck, CommandRejected):
            return self._finish(request.spec, precheck)

        if request.spec.precheck_satisfied(precheck):
            self.logger.info(
                f"Goal for '{request.spec.name}' already satisfied, no command sent",
                LogContext.PRECHECK,
                {"state": precheck.state, "mode": precheck.mode},
            )
            return self._finish(request.spec, AlreadySatisfied(snapshot=precheck))

        return self._finish(
            request.spec, await self._dispatch_and_verify(request, precheck)
        )

    async def toggle(
        self, device: DeviceIdentity, toggle_name: str
    ) -> tuple[ActionSpec, VerificationOutcome]:
        """
        Read the state once, then run the activate or deactivate flow.

        Returns the ActionSpec that was actually run together with its outcome.
        """
        decider, when_satisfied, otherwise = TOGGLES[toggle_name]
        self.logger.action_start(toggle_name, device.device_id)

        precheck = await self._precheck(device, decider)
        if isinstance(precheck, CommandRejected):
            return decider, self._finish_named(toggle_name, precheck)

        if not precheck.online:
            rejected = CommandRejected(
                error=ErrorInfo.from_exception(
                    DeviceOffline("Cannot decide toggle direction while offline"),
                    "precheck",
                ),
                snapshot=precheck,
            )
            return decider, self._finish_named(toggle_name, rejected)

        chosen = when_satisfied if decider.precheck_satisfied(precheck) else otherwise
        self.logger.info(
            f"Toggle '{toggle_name}' resolved to '{chosen.name}'",
            LogContext.PRECHECK,
            {"state": precheck.state, "mode": precheck.mode},
        )
        outcome = await self._dispatch_and_verify(
            ActionRequest(device=device, spec=chosen), precheck
        )
        return chosen, self._finish_named(toggle_name, outcome)

    async def status(self, device: DeviceIdentity) -> DeviceSnapshot:
        """Read one snapshot, checking that the device belongs to the expected family."""
        snapshot = await self.client.query_state(device.device_id)
        self._check_family(device, snapshot)
        return snapshot

    async def _precheck(
        self, device: DeviceIdentity, spec: ActionSpec
    ) -> DeviceSnapshot | CommandRejected:
        try:
            snapshot = await self.client.query_state(device.device_id)
            self._check_family(device, snapshot)
        except NukiBridgeError as e:
            self.logger.error(
                f"Precheck for '{spec.name}' failed: {e}",
                LogContext.PRECHECK,
                {"kind": e.kind},
            )
            return CommandRejected(error=ErrorInfo.from_exception(e, "precheck"))
        return snapshot

    def _check_family(self, device: DeviceIdentity, snapshot: DeviceSnapshot) -> None:
        family = family_for_type(snapshot.device_type)
        if snapshot.device_type is not None and family != device.family:
            raise DeviceTypeMismatch(
                f"Device {device.device_id} has type {snapshot.device_type}, "
                f"expected {device.family.value}"
            )

    async def _dispatch_and_verify(
        self, request: ActionRequest, precheck: DeviceSnapshot
    ) -> VerificationOutcome:
        spec = request.spec
        device_id = request.device.device_id

        try:
            await self.client.send_action(device_id, spec.action_code)
        except TransportError as e:
            self.logger.error(
                f"Command '{spec.name}' could not be delivered: {e}",
                LogContext.COMMAND,
                {"action_code": spec.action_code, "status_code": e.status_code},
            )
            return CommandRejected(
                error=ErrorInfo.from_exception(e, "dispatch"), snapshot=precheck
            )

        self.logger.info(
            f"Command '{spec.name}' accepted",
            LogContext.COMMAND,
            {"action_code": spec.action_code},
        )

        if spec.fire_and_forget:
            return Succeeded(snapshot=precheck, poll_attempts=0)

        return await self._poll(request, precheck)

    async def _poll(
        self, request: ActionRequest, precheck: DeviceSnapshot
    ) -> VerificationOutcome:
        spec = request.spec
        state = VerificationState()
        last_valid: DeviceSnapshot | None = None
        # a device already resting in a spring-back state must move first
        accept_spring_back = precheck.state not in spec.spring_back_states

        while state.can_poll(self.config):
            # delay_for_attempt(0) is the base settle time
            await self._sleep(delay_for_attempt(state.failure_budget, self.config) / 1000)

            snapshot = await self._sample(request.device.device_id)
            state.record_sample()
            classification = classify(snapshot, spec, accept_spring_back)
            self.logger.poll_sample(
                spec.name,
                state.poll_attempts,
                classification.value,
                snapshot.state,
                snapshot.mode,
                state.failure_budget,
            )

            if classification == Classification.GOAL:
                return Succeeded(snapshot=snapshot, poll_attempts=state.poll_attempts)
            if classification == Classification.BLOCKING_ERROR:
                error = DeviceBlockingError(
                    f"Device {snapshot.device_id} reported state {snapshot.state}"
                )
                return FailedTerminal(
                    snapshot=snapshot,
                    poll_attempts=state.poll_attempts,
                    message_key=error.message_key,
                    error=ErrorInfo.from_exception(error, "poll"),
                )
            if snapshot.online:
                last_valid = snapshot
                if snapshot.state not in spec.spring_back_states:
                    accept_spring_back = True
            if classification != Classification.TRANSITIONAL:
                state.record_failure()

        if state.hit_hard_ceiling(self.config):
            self.logger.warning(
                f"Hard poll ceiling reached for '{spec.name}'",
                LogContext.POLL,
                {"summary": state.get_limits_summary()},
            )

        if last_valid is None:
            error = DeviceOffline(f"No valid state after {state.poll_attempts} polls")
            return FailedUnreachable(
                poll_attempts=state.poll_attempts,
                message_key=error.message_key,
                error=ErrorInfo.from_exception(error, "poll"),
            )
        error = GoalNotReached(
            f"'{spec.name}' not confirmed after {state.poll_attempts} polls"
        )
        return FailedTerminal(
            snapshot=last_valid,
            poll_attempts=state.poll_attempts,
            message_key=error.message_key,
            error=ErrorInfo.from_exception(error, "poll"),
        )

    async def _sample(self, device_id: str) -> DeviceSnapshot:
        try:
            return await self.client.query_state(device_id)
        except TransportError as e:
            self.logger.warning(
                f"State query failed during polling: {e}",
                LogContext.POLL,
                {"status_code": e.status_code},
            )
            return DeviceSnapshot(device_id=device_id)

    def _finish(self, spec: ActionSpec, outcome: VerificationOutcome) -> VerificationOutcome:
        return self._finish_named(spec.name, outcome)

    def _finish_named(self, name: str, outcome: VerificationOutcome) -> VerificationOutcome:
        self.logger.outcome(name, outcome.kind, outcome.poll_attempts)
        return outcome
