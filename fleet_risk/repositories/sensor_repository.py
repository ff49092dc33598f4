"""
Sensor Repository - Fuel and speed sensor time series

The sensors endpoint answers with one item per sensor:

    [{"Name": "FuelActualVolume", "data": [{"t": "2026-01-12T10:00:00", "v": 45.2}, ...]},
     {"Name": "Speed", "data": [...]}]

Key casing varies ("Name"/"name", "data"/"Data"); sensor names are matched
case-insensitively. Readings without a timestamp are dropped.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from fleet_risk.models import FuelSnapshot, SensorPoint
from fleet_risk.repositories.gps_api_client import GpsApiClient

logger = logging.getLogger(__name__)

FUEL_VOLUME = "FuelActualVolume"
FUEL_CONSUMED_TOTAL = "FuelConsumedTotal"
SPEED = "Speed"

# sensor name -> FuelSnapshot field
SNAPSHOT_FIELDS = {
    FUEL_VOLUME: "fuel_volume",
    FUEL_CONSUMED_TOTAL: "fuel_consumed_total",
    SPEED: "speed",
}


def get_sensor_points(items: List[Any], sensor_name: str) -> List[SensorPoint]:
    """Readings of one sensor, in payload order."""
    wanted = sensor_name.lower()
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("Name") or item.get("name") or ""
        if name.lower() != wanted:
            continue

        raw_points = item.get("data") or item.get("Data") or []
        points = []
        for raw in raw_points:
            if not isinstance(raw, dict) or not raw.get("t"):
                continue
            try:
                points.append(SensorPoint.model_validate(raw))
            except ValidationError:
                logger.debug(f"Skipping unreadable {sensor_name} point {raw!r}")
        return points
    return []


def merge_into_snapshots(items: List[Any]) -> List[FuelSnapshot]:
    """
    Merge per-sensor series into one timeline. Each distinct timestamp
    becomes a FuelSnapshot carrying whatever sensors reported at that instant.
    """
    merged: Dict[datetime, Dict[str, Optional[float]]] = {}
    for sensor_name, field_name in SNAPSHOT_FIELDS.items():
        for point in get_sensor_points(items, sensor_name):
            merged.setdefault(point.t, {})[field_name] = point.v

    return [
        FuelSnapshot(timestamp=timestamp, **values)
        for timestamp, values in sorted(merged.items(), key=lambda entry: entry[0])
    ]


class SensorRepository:
    """Repository for fuel/speed sensor data access operations."""

    def __init__(self, client: GpsApiClient):
        self.client = client

    async def get_fuel_snapshots(
        self,
        vehicle_code: str,
        window_minutes: int = 60,
        now: Optional[datetime] = None,
    ) -> List[FuelSnapshot]:
        """
        Fuel volume, cumulative consumption and speed for the last
        `window_minutes`, merged and sorted chronologically.

        Raises:
            UpstreamError: sensor data could not be fetched
        """
        date_to = now or datetime.now(timezone.utc)
        date_from = date_to - timedelta(minutes=window_minutes)

        data = await self.client.get_sensors(
            vehicle_code, ",".join(SNAPSHOT_FIELDS), date_from, date_to
        )
        if not isinstance(data, list):
            return []

        snapshots = merge_into_snapshots(data)
        logger.debug(f"Fetched {len(snapshots)} fuel snapshots for {vehicle_code}")
        return snapshots

    async def get_fuel_and_speed_points(
        self,
        vehicle_code: str,
        window_minutes: int = 90,
        now: Optional[datetime] = None,
    ) -> Tuple[List[SensorPoint], List[SensorPoint]]:
        """
        Raw fuel volume and speed readings for the recent-drop classifier.

        Raises:
            UpstreamError: sensor data could not be fetched
        """
        date_to = now or datetime.now(timezone.utc)
        date_from = date_to - timedelta(minutes=window_minutes)

        data = await self.client.get_sensors(
            vehicle_code, f"{FUEL_VOLUME},{SPEED}", date_from, date_to
        )
        if not isinstance(data, list):
            return [], []

        return get_sensor_points(data, FUEL_VOLUME), get_sensor_points(data, SPEED)
