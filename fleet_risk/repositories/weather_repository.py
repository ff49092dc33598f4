"""
Weather Repository - Current conditions at a position

Open-Meteo compatible forecast endpoint, ``current`` block only. Missing
weather is a normal state: every failure returns None, never raises.
"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from pydantic import ValidationError

from fleet_risk.models import WeatherObservation
from fleet_risk.models.telemetry_models import as_utc
from fleet_risk.settings import WeatherSettings, get_settings

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,precipitation,wind_speed_10m,weather_code"


def _parse_time(value) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError:
        return None


class WeatherRepository:
    """Repository for weather observations."""

    def __init__(
        self,
        settings: Optional[WeatherSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings().weather
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.settings.timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_observation(
        self, latitude: float, longitude: float
    ) -> Optional[WeatherObservation]:
        """Current weather at (latitude, longitude), None when unavailable."""
        params = {
            "latitude": f"{latitude:.4f}",
            "longitude": f"{longitude:.4f}",
            "current": CURRENT_FIELDS,
            "wind_speed_unit": "kmh",
        }
        try:
            response = await self._client.get(self.settings.base_url, params=params)
            response.raise_for_status()
            current = response.json().get("current")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Weather unavailable at {latitude:.3f},{longitude:.3f}: {e}")
            return None

        if not isinstance(current, dict):
            return None

        try:
            return WeatherObservation(
                temperature_c=current.get("temperature_2m"),
                wind_speed_kmh=current.get("wind_speed_10m"),
                precipitation_mm=current.get("precipitation"),
                weather_code=current.get("weather_code"),
                observed_at=_parse_time(current.get("time")),
            )
        except ValidationError as e:
            logger.warning(f"Unreadable weather payload: {e.error_count()} errors")
            return None
