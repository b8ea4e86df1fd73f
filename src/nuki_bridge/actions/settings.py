"""
Per-request configuration lookup for the Nuki Web API.
"""

import os
from dataclasses import dataclass

from nuki_bridge.actions.errors import ConfigurationMissing
from nuki_bridge.actions.models import DeviceFamily, DeviceIdentity

DEFAULT_BASE_URL = "https://api.nuki.io"

_DEVICE_KEYS = {
    DeviceFamily.LOCK: "smartlock_id",
    DeviceFamily.OPENER: "opener_id",
}


@dataclass(frozen=True)
class NukiConfig:
    """API token and one device id per family."""

    api_token: str | None = None
    smartlock_id: str | None = None
    opener_id: str | None = None
    base_url: str = DEFAULT_BASE_URL
    locale: str = "en"
    verification_profile: str = "production"

    @classmethod
    def from_env(cls) -> "NukiConfig":
        """Read configuration from environment variables. Missing keys stay None."""
        return cls(
            api_token=os.getenv("NUKI_API_TOKEN") or None,
            smartlock_id=os.getenv("NUKI_SMARTLOCK_ID") or None,
            opener_id=os.getenv("NUKI_OPENER_ID") or None,
            base_url=os.getenv("NUKI_API_BASE_URL") or DEFAULT_BASE_URL,
            locale=os.getenv("NUKI_LOCALE") or "en",
            verification_profile=os.getenv("NUKI_VERIFICATION_PROFILE") or "production",
        )

    def require(self, key: str) -> str:
        value = getattr(self, key, None)
        if not value:
            raise ConfigurationMissing(key)
        return value

    def device_for(self, family: DeviceFamily) -> DeviceIdentity:
        return DeviceIdentity(
            device_id=self.require(_DEVICE_KEYS[family]), family=family
        )
