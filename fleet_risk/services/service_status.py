"""
Service Status Calculator

Deterministic oil-change / service interval tracking.

There is no maintenance-history integration yet, so the position of each
vehicle inside its 10,000 km service interval is mocked from a stable
32-bit hash of the vehicle id. The same id always produces the same
odometer mock and remaining-km pair: no randomness, no clock.

Swap in a real source by implementing MaintenanceSource; nothing in the
scorer or the aggregator depends on the hash.
"""

import math
from typing import Optional, Protocol

import structlog

from fleet_risk.models import ServiceInfo, ServiceStatus

logger = structlog.get_logger()


class MaintenanceSource(Protocol):
    def service_status(
        self, vehicle_id: str, odometer: Optional[float] = None
    ) -> ServiceInfo: ...


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def hash_vehicle_id(vehicle_id: str) -> int:
    """
    Polynomial string hash (base 31) over UTF-16 code units, wrapped to the
    signed 32-bit range, then made non-negative.

    Characters outside the BMP contribute their high surrogate only.

    Examples:
        >>> hash_vehicle_id("")
        0
        >>> hash_vehicle_id("a")
        97
    """
    h = 0
    for char in vehicle_id:
        code = ord(char)
        if code > 0xFFFF:
            code = 0xD800 + ((code - 0x10000) >> 10)
        h = _to_int32(31 * h + code)
    return abs(h)


class ServiceStatusCalculator:
    """
    Maintenance status from (vehicle id, odometer).

    Example Usage:
        calculator = ServiceStatusCalculator()
        info = calculator.service_status("V-1042", odometer=84_200)
        # info.service_status -> ServiceStatus.OK / WARNING / CRITICAL
    """

    SERVICE_INTERVAL_KM = 10_000
    ODOMETER_MIN_KM = 10_000
    ODOMETER_RANGE_KM = 170_000  # mock odometer lands in 10,000 - 180,000

    CRITICAL_REMAINING_KM = 500
    WARNING_REMAINING_KM = 2_000

    def mock_odometer(self, vehicle_id: str) -> int:
        h = hash_vehicle_id(vehicle_id)
        return self.ODOMETER_MIN_KM + (h % (self.ODOMETER_RANGE_KM + 1))

    def remaining_km(self, vehicle_id: str) -> int:
        # shifted bits keep remaining independent of the odometer mock
        return (hash_vehicle_id(vehicle_id) >> 4) % self.SERVICE_INTERVAL_KM

    def status_for_remaining(self, remaining_km: int) -> ServiceStatus:
        if remaining_km <= self.CRITICAL_REMAINING_KM:
            return ServiceStatus.CRITICAL
        if remaining_km <= self.WARNING_REMAINING_KM:
            return ServiceStatus.WARNING
        return ServiceStatus.OK

    def progress_percent(self, remaining_km: int) -> int:
        """
        Share of the service interval already consumed, 0-100.

        Examples:
            >>> ServiceStatusCalculator().progress_percent(10_000)
            0
            >>> ServiceStatusCalculator().progress_percent(2_500)
            75
            >>> ServiceStatusCalculator().progress_percent(9_950)
            1
        """
        consumed = self.SERVICE_INTERVAL_KM - remaining_km
        # halves round up
        percent = math.floor(consumed * 100 / self.SERVICE_INTERVAL_KM + 0.5)
        return min(100, max(0, percent))

    def service_status(
        self, vehicle_id: str, odometer: Optional[float] = None
    ) -> ServiceInfo:
        """
        Build the ServiceInfo for one vehicle.

        Args:
            vehicle_id: Vehicle code
            odometer: Real odometer reading in km. When missing or zero the
                hash-based mock is reported instead.

        Returns:
            ServiceInfo with next_service_at = odometer + remaining_km
        """
        remaining = self.remaining_km(vehicle_id)
        if odometer is not None and odometer > 0:
            current = int(round(odometer))
        else:
            current = self.mock_odometer(vehicle_id)

        info = ServiceInfo(
            odometer=current,
            remaining_km=remaining,
            next_service_at=current + remaining,
            service_status=self.status_for_remaining(remaining),
            progress_percent=self.progress_percent(remaining),
        )
        logger.debug(
            "Service status calculated",
            vehicle_id=vehicle_id,
            remaining_km=remaining,
            service_status=info.service_status.value,
        )
        return info
