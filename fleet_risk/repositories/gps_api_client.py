"""
GPS API Client - Upstream telemetry communication

Async client for the GPS telemetry REST API (vehicle roster, eco-driving
events, sensor time series). HTTP Basic auth, JSON responses.

Timeouts are enforced here; retries are not performed. Any transport
failure or non-2xx response raises UpstreamError and the calling
repository decides how to degrade.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from fleet_risk.settings import GpsApiSettings, get_settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The upstream API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def format_api_time(value: datetime) -> str:
    """
    Minute-precision UTC format expected by the API: YYYY-MM-DDTHH:MM

    Examples:
        >>> format_api_time(datetime(2026, 3, 1, 8, 5, 59, tzinfo=timezone.utc))
        '2026-03-01T08:05'
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M")


class GpsApiClient:
    """
    Thin async wrapper around httpx.AsyncClient.

    Example Usage:
        async with GpsApiClient() as client:
            vehicles = await client.get_json("/vehicles/group/FLEET1")
    """

    def __init__(
        self,
        settings: Optional[GpsApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            settings: GPS API settings (defaults to global settings)
            client: Pre-built httpx client (tests inject a MockTransport one)
        """
        self.settings = settings or get_settings().gps_api
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.base_url,
            auth=httpx.BasicAuth(self.settings.user, self.settings.password),
            headers={"Content-Type": "application/json"},
            timeout=self.settings.timeout_seconds,
        )

    async def __aenter__(self) -> "GpsApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        GET a path relative to the API base and decode the JSON body.

        Raises:
            UpstreamError: transport failure, non-2xx status or invalid JSON
        """
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"GPS API request failed ({path}): {e}")
            raise UpstreamError(f"Failed to communicate with GPS API: {e}") from e

        if response.is_error:
            logger.warning(
                f"GPS API error {response.status_code} for {path}",
                extra={"status_code": response.status_code},
            )
            raise UpstreamError(
                f"Upstream API error {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON from GPS API ({path})",
                status_code=response.status_code,
                body=response.text[:500],
            ) from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_groups(self) -> Any:
        return await self.get_json("/groups")

    async def get_vehicles_by_group(self, group_code: str) -> Any:
        return await self.get_json(f"/vehicles/group/{group_code}")

    async def get_eco_events(
        self, vehicle_code: str, date_from: datetime, date_to: datetime
    ) -> Any:
        return await self.get_json(
            f"/vehicle/{vehicle_code}/eco-driving-events",
            params={"from": format_api_time(date_from), "to": format_api_time(date_to)},
        )

    async def get_sensors(
        self,
        vehicle_code: str,
        sensor_names: str,
        date_from: datetime,
        date_to: datetime,
    ) -> Any:
        return await self.get_json(
            f"/vehicle/{vehicle_code}/sensors/{sensor_names}",
            params={"from": format_api_time(date_from), "to": format_api_time(date_to)},
        )
