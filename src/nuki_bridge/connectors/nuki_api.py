import asyncio
import httpx
from typing import Any

from nuki_bridge.actions.action_logger import ActionLogger
from nuki_bridge.actions.errors import (
    ConfigurationMissing,
    TransportNonRetryable,
    TransportRetryable,
)
from nuki_bridge.actions.models import DeviceSnapshot
from nuki_bridge.actions.retry import SleepFunc, retry_async
from nuki_bridge.actions.verification_config import VerificationConfig

RESOURCE = "smartlock"


class NukiAPIClient:
    """
    Async client for the Nuki Web API.

    A 2xx answer to an action only means the request was accepted; it says
    nothing about whether the device executed it.
    """

    def __init__(
        self,
        api_token: str | None,
        base_url: str = "https://api.nuki.io",
        config: VerificationConfig | None = None,
        logger: ActionLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        if not api_token:
            raise ConfigurationMissing("api_token")

        self.base_url = base_url.rstrip("/")
        self.config = config or VerificationConfig()
        self.logger = logger or ActionLogger(output_format="silent")
        self._sleep = sleep
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=self.config.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def send_action(self, device_id: str, action: int) -> None:
        """
        Send an action command to a device.

        Args:
            device_id: Nuki device id
            action: Action code (1-5, meaning depends on the device family)

        Raises:
            TransportRetryable: retries exhausted on network/429/5xx errors
            TransportNonRetryable: any other 4xx answer
        """
        await self._request(
            "send_action",
            device_id,
            "POST",
            f"/{RESOURCE}/{device_id}/action",
            json={"action": int(action)},
        )

    async def get_device(self, device_id: str) -> dict[str, Any] | None:
        """
        Fetch the raw device document.

        Returns None when the body is empty or not JSON.
        """
        response = await self._request(
            "get_device", device_id, "GET", f"/{RESOURCE}/{device_id}"
        )
        try:
            return response.json()
        except ValueError:
            return None

    async def query_state(self, device_id: str) -> DeviceSnapshot:
        """Take one snapshot of the device. Malformed bodies give an offline snapshot."""
        payload = await self.get_device(device_id)
        return DeviceSnapshot.from_api(device_id, payload)

    async def _request(
        self,
        operation: str,
        device_id: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        async def attempt(index: int) -> httpx.Response:
            try:
                response = await self.client.request(method, path, json=json)
            except httpx.TransportError as e:
                self.logger.api_attempt(operation, device_id, index, "network_error")
                raise TransportRetryable(f"{operation} failed: {e}") from e

            status = response.status_code
            if response.is_success:
                self.logger.api_attempt(operation, device_id, index, "success", status)
                return response
            if status == 429 or status >= 500:
                self.logger.api_attempt(operation, device_id, index, "retryable", status)
                raise TransportRetryable(
                    f"{operation} returned HTTP {status}", status_code=status
                )

            self.logger.api_attempt(operation, device_id, index, "rejected", status)
            raise TransportNonRetryable(
                f"{operation} returned HTTP {status}: {response.text[:200]}",
                status_code=status,
            )

        return await retry_async(attempt, self.config, sleep=self._sleep)
