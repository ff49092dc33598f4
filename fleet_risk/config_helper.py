"""
Configuration helper for the service layer

Wires settings -> repositories -> services -> orchestrators.

Usage:
    from fleet_risk.config_helper import setup_architecture

    repos, services, aggregator, detail = setup_architecture()
    result = await aggregator.run_cycle("FLEET1")
"""

from typing import Any, Dict, Optional

from fleet_risk.settings import Settings, get_settings


def create_repositories(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Create all repository instances with proper configuration.

    Returns:
        Dict with repository instances:
        {
            'client': GpsApiClient,
            'vehicle': VehicleRepository,
            'eco': EcoEventRepository,
            'sensor': SensorRepository,
            'weather': WeatherRepository,
        }
    """
    from fleet_risk.repositories import (
        EcoEventRepository,
        GpsApiClient,
        SensorRepository,
        VehicleRepository,
        WeatherRepository,
    )

    settings = settings or get_settings()
    client = GpsApiClient(settings.gps_api)

    return {
        "client": client,
        "vehicle": VehicleRepository(client),
        "eco": EcoEventRepository(
            client, lookback_hours=settings.gps_api.eco_lookback_hours
        ),
        "sensor": SensorRepository(client),
        "weather": WeatherRepository(settings.weather),
    }


def create_services(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Create all service instances. Services are pure and hold no connections.

    Returns:
        Dict with service instances:
        {
            'scorer': RiskScorer,
            'maintenance': ServiceStatusCalculator,
            'fuel_detector': FuelAnomalyDetector,
            'ranker': PriorityRanker,
        }
    """
    from fleet_risk.services import (
        FuelAnomalyDetector,
        PriorityRanker,
        RiskScorer,
        ServiceStatusCalculator,
    )

    settings = settings or get_settings()

    return {
        "scorer": RiskScorer(),
        "maintenance": ServiceStatusCalculator(),
        "fuel_detector": FuelAnomalyDetector(),
        "ranker": PriorityRanker(top_n=settings.aggregator.priority_queue_size),
    }


def create_aggregator(
    services: Dict[str, Any],
    repositories: Dict[str, Any],
    settings: Optional[Settings] = None,
):
    """Create FleetAggregator with all dependencies."""
    from fleet_risk.orchestrators import AggregatorConfig, FleetAggregator

    settings = settings or get_settings()
    config = AggregatorConfig(
        max_concurrency=settings.aggregator.max_concurrency,
        priority_queue_size=settings.aggregator.priority_queue_size,
    )

    return FleetAggregator(
        eco_repo=repositories["eco"],
        vehicle_repo=repositories["vehicle"],
        weather_repo=repositories["weather"],
        risk_scorer=services["scorer"],
        maintenance=services["maintenance"],
        priority_ranker=services["ranker"],
        config=config,
    )


def create_vehicle_detail(
    services: Dict[str, Any],
    repositories: Dict[str, Any],
    settings: Optional[Settings] = None,
):
    """Create VehicleDetailService with a fresh fuel cache."""
    from fleet_risk.orchestrators import VehicleDetailService
    from fleet_risk.services import FuelRiskCache

    settings = settings or get_settings()

    return VehicleDetailService(
        sensor_repo=repositories["sensor"],
        detector=services["fuel_detector"],
        cache=FuelRiskCache(),
        maintenance=services["maintenance"],
        fuel_window_minutes=settings.aggregator.fuel_window_minutes,
        anomaly_window_minutes=settings.aggregator.fuel_anomaly_window_minutes,
    )


def setup_architecture(settings: Optional[Settings] = None):
    """
    One-liner to set up entire architecture.

    Returns:
        Tuple of (repositories, services, aggregator, vehicle_detail)
    """
    settings = settings or get_settings()
    repositories = create_repositories(settings)
    services = create_services(settings)
    aggregator = create_aggregator(services, repositories, settings)
    vehicle_detail = create_vehicle_detail(services, repositories, settings)

    return repositories, services, aggregator, vehicle_detail


async def close_repositories(repositories: Dict[str, Any]) -> None:
    """Release the HTTP connection pools held by the repositories."""
    await repositories["client"].aclose()
    await repositories["weather"].aclose()
