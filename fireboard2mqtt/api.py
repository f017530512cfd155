"""Client for the FireBoard cloud REST API."""

import json
import logging
from typing import Any, List, Optional

import aiohttp
from pydantic import TypeAdapter, ValidationError

from fireboard2mqtt.constants import FIREBOARD_API_BASE, USER_AGENT
from fireboard2mqtt.exceptions import (
    FireboardAuthenticationError,
    FireboardConnectionError,
    FireboardDataError,
)
from fireboard2mqtt.models import Device, DriveStatus

log = logging.getLogger(__name__)

_DEVICE_LIST = TypeAdapter(List[Device])


class FireboardApiClient:
    """
    Authenticated FireBoard cloud session.

    Each call makes exactly one request; retrying is left to the next poll.
    """

    def __init__(
        self,
        email: str,
        password: str,
        websession: Optional[aiohttp.ClientSession] = None,
        api_base: str = FIREBOARD_API_BASE,
    ) -> None:
        self.api_base = api_base if api_base.endswith("/") else f"{api_base}/"
        self._email = email
        self._password = password
        self._websession = websession
        self._own_session = websession is None
        self._token: Optional[str] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._websession is None:
            self._websession = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
            self._own_session = True
        return self._websession

    async def close(self) -> None:
        if self._own_session and self._websession:
            await self._websession.close()
            self._websession = None

    async def __aenter__(self) -> "FireboardApiClient":
        await self.login()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = f"Token {self._token}"
        return headers

    async def login(self) -> None:
        """Exchange the account credentials for an API token."""
        session = await self._ensure_session()
        url = f"{self.api_base}rest-auth/login/"
        try:
            async with session.post(
                url,
                json={"username": self._email, "password": self._password},
                headers=self._headers(),
            ) as response:
                if response.status in (400, 401, 403):
                    raise FireboardAuthenticationError(
                        f"Error authenticating with Fireboard API ({response.status})! "
                        "Check your username and password."
                    )
                response.raise_for_status()
                body = await response.json(content_type=None)
        except aiohttp.ClientError as err:
            raise FireboardConnectionError(f"Failed to reach Fireboard API: {err}") from err
        except ValueError as err:
            raise FireboardDataError(f"Failed to parse login response: {err}") from err

        token = body.get("key") if isinstance(body, dict) else None
        if not token:
            raise FireboardDataError("Login response did not contain an api key")
        self._token = token
        log.debug("client authenticated successfully")

    async def _get_json(self, path: str) -> Any:
        session = await self._ensure_session()
        url = f"{self.api_base}{path}"
        try:
            async with session.get(url, headers=self._headers()) as response:
                text = await response.text()
                if response.status >= 300:
                    raise FireboardConnectionError(f"Error requesting {path}: {response.status} {text}")
        except aiohttp.ClientError as err:
            raise FireboardConnectionError(f"Failed to reach Fireboard API: {err}") from err
        try:
            return json.loads(text)
        except ValueError as err:
            raise FireboardDataError(f"Failed to parse {path}: {err} from response body: {text}") from err

    async def list_devices(self) -> List[Device]:
        body = await self._get_json("v1/devices.json")
        try:
            return _DEVICE_LIST.validate_python(body)
        except ValidationError as err:
            raise FireboardDataError(f"Failed to parse devices: {err}") from err

    async def get_realtime_drivelog(self, device_uuid: str) -> Optional[DriveStatus]:
        """Realtime drive log for a device, None when the device reports no drive."""
        body = await self._get_json(f"v1/devices/{device_uuid}/drivelog.json")
        if body == {} or body is None:
            return None
        try:
            return DriveStatus.model_validate(body)
        except ValidationError as err:
            raise FireboardDataError(f"Failed to parse drivelog for {device_uuid}: {err}") from err
