"""Orchestrator layer for coordinating services and repositories."""

from .fleet_aggregator import AggregatorConfig, FleetAggregator
from .vehicle_detail import VehicleDetailService

__all__ = [
    "AggregatorConfig",
    "FleetAggregator",
    "VehicleDetailService",
]
