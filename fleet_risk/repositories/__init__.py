"""Repository layer for upstream data access."""

from .eco_event_repository import EcoEventRepository
from .gps_api_client import GpsApiClient, UpstreamError
from .sensor_repository import SensorRepository
from .vehicle_repository import VehicleRepository
from .weather_repository import WeatherRepository

__all__ = [
    "EcoEventRepository",
    "GpsApiClient",
    "SensorRepository",
    "UpstreamError",
    "VehicleRepository",
    "WeatherRepository",
]
