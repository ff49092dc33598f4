"""
Vehicle Repository - Fleet roster access

Roster rows that fail validation are logged and skipped so one malformed
vehicle cannot hide the rest of the group.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from fleet_risk.models import Vehicle
from fleet_risk.repositories.gps_api_client import GpsApiClient, UpstreamError

logger = logging.getLogger(__name__)


class VehicleRepository:
    """Repository for vehicle roster operations."""

    def __init__(self, client: GpsApiClient):
        self.client = client

    async def get_groups(self) -> List[Dict[str, Any]]:
        data = await self.client.get_groups()
        return data if isinstance(data, list) else []

    async def get_vehicles(self, group_code: str) -> List[Vehicle]:
        """
        Get the vehicle roster of a group.

        Raises:
            UpstreamError: the roster itself could not be fetched
        """
        data = await self.client.get_vehicles_by_group(group_code)
        if not isinstance(data, list):
            raise UpstreamError(f"Unexpected roster payload for group {group_code}")

        vehicles = []
        for row in data:
            try:
                vehicles.append(Vehicle.model_validate(row))
            except ValidationError as e:
                code = row.get("Code") if isinstance(row, dict) else None
                logger.warning(
                    f"Skipping malformed vehicle record {code!r}: {e.error_count()} errors"
                )

        logger.debug(f"Fetched {len(vehicles)}/{len(data)} vehicles for group {group_code}")
        return vehicles
