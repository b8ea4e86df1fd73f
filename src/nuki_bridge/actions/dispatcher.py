"""
Maps an inbound operation name and HTTP method to an engine entry point.
"""

import asyncio
from enum import Enum
from typing import Any, Callable

import httpx

from nuki_bridge.actions import action_specs
from nuki_bridge.actions.action_logger import ActionLogger, LogContext
from nuki_bridge.actions.errors import (
    ConfigurationMissing,
    MethodNotAllowed,
    NukiBridgeError,
    UnknownOperation,
)
from nuki_bridge.actions.messages import MessageCatalog
from nuki_bridge.actions.models import ActionRequest, ActionSpec, DeviceFamily, ErrorInfo
from nuki_bridge.actions.result_formatter import ResultFormatter
from nuki_bridge.actions.retry import SleepFunc
from nuki_bridge.actions.settings import NukiConfig
from nuki_bridge.actions.verification_config import VerificationConfig
from nuki_bridge.actions.verification_engine import ActionVerificationEngine
from nuki_bridge.connectors.nuki_api import NukiAPIClient


class Operation(Enum):
    """Every operation the bridge accepts: (name, HTTP method, device family)."""

    LOCK = ("lock", "POST", DeviceFamily.LOCK)
    UNLOCK = ("unlock", "POST", DeviceFamily.LOCK)
    UNLATCH = ("unlatch", "POST", DeviceFamily.LOCK)
    TOGGLE_LOCK = ("toggle_lock", "POST", DeviceFamily.LOCK)
    LOCK_STATUS = ("lock_status", "GET", DeviceFamily.LOCK)
    ACTIVATE_RTO = ("activate_rto", "POST", DeviceFamily.OPENER)
    DEACTIVATE_RTO = ("deactivate_rto", "POST", DeviceFamily.OPENER)
    TOGGLE_RTO = ("toggle_rto", "POST", DeviceFamily.OPENER)
    ACTIVATE_CONTINUOUS_MODE = ("activate_continuous_mode", "POST", DeviceFamily.OPENER)
    DEACTIVATE_CONTINUOUS_MODE = ("deactivate_continuous_mode", "POST", DeviceFamily.OPENER)
    TOGGLE_CONTINUOUS_MODE = ("toggle_continuous_mode", "POST", DeviceFamily.OPENER)
    ELECTRIC_STRIKE = ("electric_strike", "POST", DeviceFamily.OPENER)
    OPENER_STATUS = ("opener_status", "GET", DeviceFamily.OPENER)

    @property
    def method(self) -> str:
        return self.value[1]

    @property
    def family(self) -> DeviceFamily:
        return self.value[2]

    @property
    def operation_name(self) -> str:
        return self.value[0]

    @classmethod
    def parse(cls, name: str) -> "Operation":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise UnknownOperation(f"Unknown operation: {name}")


ACTION_SPECS: dict[Operation, ActionSpec] = {
    Operation.LOCK: action_specs.LOCK,
    Operation.UNLOCK: action_specs.UNLOCK,
    Operation.UNLATCH: action_specs.UNLATCH,
    Operation.ACTIVATE_RTO: action_specs.ACTIVATE_RTO,
    Operation.DEACTIVATE_RTO: action_specs.DEACTIVATE_RTO,
    Operation.ACTIVATE_CONTINUOUS_MODE: action_specs.ACTIVATE_CONTINUOUS_MODE,
    Operation.DEACTIVATE_CONTINUOUS_MODE: action_specs.DEACTIVATE_CONTINUOUS_MODE,
    Operation.ELECTRIC_STRIKE: action_specs.ELECTRIC_STRIKE,
}

TOGGLE_OPERATIONS = {
    Operation.TOGGLE_LOCK,
    Operation.TOGGLE_RTO,
    Operation.TOGGLE_CONTINUOUS_MODE,
}

STATUS_OPERATIONS = {Operation.LOCK_STATUS, Operation.OPENER_STATUS}


class ActionDispatcher:
    """
    Entry point for one inbound request.

    Builds the API client and the engine from a configuration value read once
    for the request, and always returns an envelope; nothing raises past here.
    """

    def __init__(
        self,
        config: NukiConfig,
        verification_config: VerificationConfig | None = None,
        logger: ActionLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
        formatter: ResultFormatter | None = None,
        client_factory: Callable[..., Any] | None = None,
    ):
        self.config = config
        self.verification_config = verification_config or VerificationConfig.for_profile(
            config.verification_profile
        )
        self.logger = logger or ActionLogger(output_format="silent")
        self.formatter = formatter or ResultFormatter(MessageCatalog(config.locale))
        self._transport = transport
        self._sleep = sleep
        self._client_factory = client_factory or NukiAPIClient

    async def dispatch(self, operation_name: str, method: str) -> dict[str, Any]:
        operation_label = operation_name
        try:
            operation = Operation.parse(operation_name)
            operation_label = operation.operation_name
            if method.upper() != operation.method:
                raise MethodNotAllowed(
                    f"{operation.operation_name} requires {operation.method}, got {method.upper()}"
                )
        except NukiBridgeError as e:
            self.logger.warning(
                f"Rejected request: {e}", LogContext.DISPATCH, {"kind": e.kind}
            )
            return self._envelope(
                operation_label,
                error=self.formatter.format_error(ErrorInfo.from_exception(e, "request")),
            )

        try:
            with self.logger.timer_context(f"dispatch {operation_label}"):
                result = await self._run(operation)
        except NukiBridgeError as e:
            # missing configuration surfaces before any network call
            stage = "config" if isinstance(e, ConfigurationMissing) else "precheck"
            self.logger.error(
                f"{operation_label} rejected: {e}", LogContext.DISPATCH, {"kind": e.kind}
            )
            return self._envelope(
                operation_label,
                error=self.formatter.format_error(ErrorInfo.from_exception(e, stage)),
            )
        except Exception as e:
            self.logger.error(
                f"{operation_label} failed unexpectedly: {e}", LogContext.DISPATCH
            )
            return self._envelope(
                operation_label,
                error=self.formatter.format_error(
                    ErrorInfo(
                        kind=type(e).__name__,
                        message_key="internal-error",
                        detail=str(e),
                        stage="request",
                    )
                ),
            )

        return self._envelope(operation_label, result=result)

    async def _run(self, operation: Operation) -> dict[str, Any]:
        device = self.config.device_for(operation.family)
        client = self._client_factory(
            self.config.api_token,
            base_url=self.config.base_url,
            config=self.verification_config,
            logger=self.logger,
            transport=self._transport,
            sleep=self._sleep,
        )
        async with client:
            engine = ActionVerificationEngine(
                client, self.verification_config, self.logger, sleep=self._sleep
            )

            if operation in STATUS_OPERATIONS:
                snapshot = await engine.status(device)
                result = self.formatter.format_status(operation.family, snapshot)
            elif operation in TOGGLE_OPERATIONS:
                spec, outcome = await engine.toggle(device, operation.operation_name)
                result = self.formatter.format_outcome(spec, outcome)
            else:
                spec = ACTION_SPECS[operation]
                outcome = await engine.execute(ActionRequest(device=device, spec=spec))
                result = self.formatter.format_outcome(spec, outcome)

        return result

    def _envelope(
        self,
        operation: str,
        result: dict[str, Any] | None = None,
        error: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if error is not None:
            return {"ok": False, "operation": operation, "error": error}
        return {"ok": bool(result and result.get("success")), "operation": operation, "result": result}
