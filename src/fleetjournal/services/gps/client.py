"""HTTP client for the GPS51 fleet tracking web API."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import httpx

from ...config import settings
from ...models.domain import PositionSample, TokenCache

logger = logging.getLogger(__name__)


class GPSApiError(RuntimeError):
    """The GPS vendor returned an unusable response."""


class GPSAuthError(GPSApiError):
    """Login to the GPS vendor was rejected."""


class GPSClient:
    """Calls GPS51 ``webapi`` actions with a session token from an injected cache.

    The token cache belongs to the caller so its lifetime can span several
    client instances and be reset in tests. Requests are not retried.
    """

    def __init__(
        self,
        token_cache: TokenCache,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        token_ttl: timedelta | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.gps_base_url).rstrip("/")
        self.username = username if username is not None else settings.gps_username
        self.password = password if password is not None else settings.gps_password
        if not self.username or not self.password:
            raise ValueError("GPS credentials are not configured.")
        self.token_cache = token_cache
        self.token_ttl = token_ttl or timedelta(hours=settings.gps_token_ttl_hours)
        self._client = http_client or httpx.Client(timeout=timeout or settings.gps_timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GPSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, params: dict[str, str], body: dict[str, Any], action: str) -> dict:
        response = self._client.post(f"{self.base_url}/webapi", params=params, json=body)
        try:
            data = response.json()
        except ValueError as exc:
            raise GPSApiError(
                f"GPS API returned non-JSON response for action '{action}'. "
                f"Status: {response.status_code}, Response: {response.text[:200]}"
            ) from exc
        if not isinstance(data, dict):
            raise GPSApiError(f"GPS API returned unexpected payload for action '{action}': {data!r}"[:300])
        return data

    def login(self, now: datetime | None = None) -> str:
        """Return a valid session token, logging in only when the cached one has expired."""
        current = now or datetime.now(timezone.utc)
        if self.token_cache.is_valid(current):
            return self.token_cache.token  # type: ignore[return-value]

        hashed = hashlib.md5(self.password.encode("utf-8")).hexdigest()
        data = self._post(
            {"action": "login"},
            {
                "type": "USER",
                "from": "WEB",
                "username": self.username,
                "password": hashed,
                "browser": "fleetjournal",
            },
            "login",
        )
        if data.get("status") != 0 or not data.get("token"):
            self.token_cache.clear()
            raise GPSAuthError(f"GPS login failed: {data.get('cause') or 'Unknown error'}")

        self.token_cache.store(str(data["token"]), current + self.token_ttl)
        logger.info(f"Logged in to GPS API as {self.username}; token valid until {self.token_cache.expires_at}")
        return self.token_cache.token  # type: ignore[return-value]

    def call(self, action: str, payload: dict[str, Any] | None = None) -> dict:
        token = self.login()
        data = self._post({"action": action, "token": token}, payload or {}, action)
        status = data.get("status")
        if status not in (0, None):
            raise GPSApiError(f"GPS action '{action}' failed: {data.get('cause') or status}")
        return data

    def list_devices(self) -> list[dict]:
        data = self.call("querymonitorlist", {"username": self.username})
        devices: list[dict] = []
        for group in data.get("groups") or []:
            devices.extend(group.get("devices") or [])
        return devices

    def last_positions(self, device_ids: Sequence[str]) -> list[PositionSample]:
        data = self.call("lastposition", {"deviceids": list(device_ids), "lastquerypositiontime": 0})
        samples: list[PositionSample] = []
        for record in data.get("records") or []:
            try:
                lat = float(record["callat"])
                lon = float(record["callon"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping GPS position without coordinates: {record!r}")
                continue
            updated_ms = record.get("updatetime") or record.get("devicetime")
            timestamp = (
                datetime.fromtimestamp(float(updated_ms) / 1000.0, tz=timezone.utc)
                if updated_ms
                else datetime.now(timezone.utc)
            )
            samples.append(
                PositionSample(
                    entity_id=str(record.get("deviceid")),
                    latitude=lat,
                    longitude=lon,
                    timestamp=timestamp,
                )
            )
        return samples

    def query_trips(self, device_id: str, begin: datetime, end: datetime) -> list[dict]:
        """Trips between two instants, split by the vendor on ignition on/off."""
        data = self.call(
            "querytrips",
            {
                "deviceid": device_id,
                "begintime": int(begin.timestamp()),
                "endtime": int(end.timestamp()),
                "timezone": settings.gps_timezone_offset,
            },
        )
        return list(data.get("totaltrips") or [])


def check_health(token_cache: TokenCache | None = None) -> bool:
    """Return True when GPS credentials are configured and a login succeeds."""
    if not settings.gps_username or not settings.gps_password:
        return False
    try:
        with GPSClient(token_cache or TokenCache()) as client:
            client.login()
        return True
    except (GPSApiError, httpx.HTTPError, ValueError) as e:
        logger.warning(f"GPS health check failed: {e}")
        return False
