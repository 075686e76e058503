"""
HTTP Gateway

httpx-based adapter for the vendor v2 REST API. Implements the live state,
command and catalog source contracts over a single reusable client.

Token acquisition/refresh is out of scope: the caller supplies a valid
access token through ApiSettings.
"""

from typing import Any

import httpx

from ...common.config import ApiSettings
from ...common.exceptions import RemoteRejectedError, TransportError
from ...common.logging_setup import get_service_logger, log_param_read
from .error_codes import describe_error
from .protocols import CommandAck

logger = get_service_logger("gateway.http")

THING_ENDPOINT = "/v2/device/thing"
STATUS_ENDPOINT = "/v2/device/thing/status"
HISTORY_ENDPOINT = "/v2/device/history"

# Thing type for devices (as opposed to groups)
DEVICE_TYPE = 1


class HttpGateway:
    """
    Talks to the remote API for device state, commands and catalog data.

    All responses share the envelope {"error": int, "msg": str, "data": {...}}.
    """

    def __init__(
        self,
        settings: ApiSettings,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.base_url = settings.resolved_base_url()
        # Reusable HTTP client - avoids connection overhead per request
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout_s)
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.access_token}",
            "X-CK-Appid": self.settings.app_id,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        device_id: str | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded envelope"""
        client = await self._get_client()
        try:
            response = await client.request(
                method,
                f"{self.base_url}{endpoint}",
                params=params,
                json=json,
                headers=self._headers(),
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(
                f"HTTP error on {method} {endpoint}: {e}",
                extra={"endpoint": endpoint, "device": device_id},
            )
            raise TransportError(str(e), device_id=device_id, endpoint=endpoint) from e
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from {endpoint}: {e}",
                device_id=device_id,
                endpoint=endpoint,
            ) from e

        if not isinstance(body, dict):
            raise TransportError(
                f"Unexpected response shape from {endpoint}",
                device_id=device_id,
                endpoint=endpoint,
            )
        return body

    def _unwrap(self, body: dict[str, Any], device_id: str | None = None) -> dict[str, Any]:
        """Return the data section, raising on a non-zero error code"""
        code = int(body.get("error") or 0)
        if code != 0:
            message = describe_error(code, body.get("msg", ""))
            logger.warning(
                f"Remote error {code} for {device_id}: {message}",
                extra={"device": device_id, "code": code},
            )
            raise RemoteRejectedError(code, message, device_id=device_id)
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # LiveStateGateway
    # ------------------------------------------------------------------

    async def get_parameter(
        self,
        device_id: str,
        param: str | list[str],
    ) -> Any:
        names = param if isinstance(param, list) else [param]
        body = await self._request(
            "GET",
            STATUS_ENDPOINT,
            device_id=device_id,
            params={
                "id": device_id,
                "type": DEVICE_TYPE,
                "params": "|".join(names),
            },
        )
        reported = self._unwrap(body, device_id).get("params") or {}

        if isinstance(param, list):
            values = {name: reported.get(name) for name in names}
            for name, value in values.items():
                log_param_read(logger.logger, device_id, name, value, success=value is not None)
            return values

        value = reported.get(param)
        log_param_read(logger.logger, device_id, param, value, success=value is not None)
        return value

    async def get_all_parameters(self, device_id: str) -> dict[str, Any] | None:
        body = await self._request(
            "GET",
            STATUS_ENDPOINT,
            device_id=device_id,
            params={"id": device_id, "type": DEVICE_TYPE},
        )
        reported = self._unwrap(body, device_id).get("params")
        return reported if isinstance(reported, dict) else None

    # ------------------------------------------------------------------
    # CommandGateway
    # ------------------------------------------------------------------

    async def submit(self, device_id: str, payload: dict[str, Any]) -> CommandAck:
        body = await self._request(
            "POST",
            STATUS_ENDPOINT,
            device_id=device_id,
            json={"type": DEVICE_TYPE, "id": device_id, "params": payload},
        )
        code = int(body.get("error") or 0)
        if code != 0:
            return CommandAck(code=code, message=describe_error(code, body.get("msg", "")))
        return CommandAck()

    # ------------------------------------------------------------------
    # CatalogSource
    # ------------------------------------------------------------------

    async def fetch_things(self, family_id: str, lang: str = "en") -> list[dict[str, Any]]:
        params = {"lang": lang}
        if family_id:
            params["familyId"] = family_id
        body = await self._request("GET", THING_ENDPOINT, params=params)
        things = self._unwrap(body).get("thingList") or []
        logger.info(f"Fetched {len(things)} things", extra={"family_id": family_id})
        return things

    async def get_device_history(self, device_id: str) -> dict[str, Any]:
        """Operation history of a device"""
        body = await self._request(
            "GET",
            HISTORY_ENDPOINT,
            device_id=device_id,
            params={"deviceid": device_id},
        )
        return self._unwrap(body, device_id)
