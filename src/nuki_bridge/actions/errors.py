"""
Error taxonomy for device actions.

Every error carries a message key understood by the message catalog so that
callers never see literal text from this layer.
"""


class NukiBridgeError(Exception):
    """Base class for all errors raised by nuki_bridge."""

    message_key = "internal-error"

    def __init__(self, detail: str = "", status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationMissing(NukiBridgeError):
    """A required configuration key has no value."""

    message_key = "configuration-missing"

    def __init__(self, key: str):
        super().__init__(f"Missing configuration value: {key}")
        self.key = key


class DeviceTypeMismatch(NukiBridgeError):
    """The device reported a type belonging to another family."""

    message_key = "device-type-mismatch"


class TransportError(NukiBridgeError):
    message_key = "command-failed"


class TransportRetryable(TransportError):
    """Network failure, rate limit or server-side error."""


class TransportNonRetryable(TransportError):
    """Client-side error; retrying will not help."""


class DeviceOffline(NukiBridgeError):
    message_key = "device-offline"


class DeviceBlockingError(NukiBridgeError):
    message_key = "motor-blocked"


class GoalNotReached(NukiBridgeError):
    message_key = "goal-not-reached"


class UnknownOperation(NukiBridgeError):
    message_key = "unknown-operation"


class MethodNotAllowed(NukiBridgeError):
    message_key = "method-not-allowed"
