"""
Eco Event Repository - Eco-driving events per vehicle

Failures degrade to "no events": a vehicle is still scored on speed and
staleness when the eco endpoint is down.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import ValidationError

from fleet_risk.models import EcoEvent
from fleet_risk.repositories.gps_api_client import GpsApiClient, UpstreamError

logger = logging.getLogger(__name__)


class EcoEventRepository:
    """Repository for eco-driving events in a fixed lookback window."""

    def __init__(self, client: GpsApiClient, lookback_hours: int = 24):
        self.client = client
        self.lookback_hours = lookback_hours

    async def get_events(
        self, vehicle_code: str, now: Optional[datetime] = None
    ) -> List[EcoEvent]:
        """Eco events of the last `lookback_hours`, [] on any upstream failure."""
        date_to = now or datetime.now(timezone.utc)
        date_from = date_to - timedelta(hours=self.lookback_hours)

        try:
            data = await self.client.get_eco_events(vehicle_code, date_from, date_to)
        except UpstreamError as e:
            logger.warning(f"Eco events unavailable for {vehicle_code}: {e}")
            return []

        if not isinstance(data, list):
            return []

        events = []
        for row in data:
            try:
                events.append(EcoEvent.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed eco event for {vehicle_code}: {e.error_count()} errors"
                )
        return events
