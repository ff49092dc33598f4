"""
Vehicle Detail Service

Backs the vehicle detail view: fuel risk for the last hour (cached per
vehicle for as long as this service lives), the recent-drop classifier
and the maintenance status.

The FuelRiskCache is injected so each view session (and each test) can
own a fresh one.
"""

import logging
from typing import Optional

from fleet_risk.models import FuelAnomalyResult, FuelRiskResult, ServiceInfo
from fleet_risk.repositories import SensorRepository
from fleet_risk.services import (
    FuelAnomalyDetector,
    FuelRiskCache,
    MaintenanceSource,
    ServiceStatusCalculator,
)

logger = logging.getLogger(__name__)


class VehicleDetailService:
    def __init__(
        self,
        sensor_repo: SensorRepository,
        detector: Optional[FuelAnomalyDetector] = None,
        cache: Optional[FuelRiskCache] = None,
        maintenance: Optional[MaintenanceSource] = None,
        fuel_window_minutes: int = 60,
        anomaly_window_minutes: int = 90,
    ):
        self.sensor_repo = sensor_repo
        self.detector = detector or FuelAnomalyDetector()
        self.cache = cache if cache is not None else FuelRiskCache()
        self.maintenance = maintenance or ServiceStatusCalculator()
        self.fuel_window_minutes = fuel_window_minutes
        self.anomaly_window_minutes = anomaly_window_minutes

    async def get_fuel_risk(
        self, vehicle_id: str, refresh: bool = False
    ) -> FuelRiskResult:
        """
        Evaluate the last `fuel_window_minutes` of fuel data.

        Cached per vehicle; `refresh=True` refetches and overwrites.

        Raises:
            UpstreamError: sensor data could not be fetched (nothing is cached)
        """
        if not refresh:
            cached = self.cache.get(vehicle_id)
            if cached is not None:
                return cached

        snapshots = await self.sensor_repo.get_fuel_snapshots(
            vehicle_id, window_minutes=self.fuel_window_minutes
        )
        result = self.detector.evaluate(snapshots)
        self.cache.set(vehicle_id, result)

        logger.debug(
            f"Fuel risk for {vehicle_id}: {result.severity.value} ({len(snapshots)} points)"
        )
        return result

    async def get_fuel_anomaly(self, vehicle_id: str) -> FuelAnomalyResult:
        """
        Classify the most recent fuel drop. Never cached.

        Raises:
            UpstreamError: sensor data could not be fetched
        """
        fuel_points, speed_points = await self.sensor_repo.get_fuel_and_speed_points(
            vehicle_id, window_minutes=self.anomaly_window_minutes
        )
        return self.detector.classify_recent_drop(fuel_points, speed_points)

    def get_service_info(
        self, vehicle_id: str, odometer: Optional[float] = None
    ) -> ServiceInfo:
        return self.maintenance.service_status(vehicle_id, odometer)
