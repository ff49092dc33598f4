"""Pydantic models for type safety and validation."""

from .fuel_models import (
    FuelAnomalyResult,
    FuelAnomalyStatus,
    FuelRiskResult,
    FuelSeverity,
    FuelSnapshot,
    SensorPoint,
)
from .risk_models import (
    AssessmentWithService,
    CriticalStaleCommunicationReason,
    EcoEventReason,
    FleetCycleResult,
    PriorityQueueItem,
    RiskAssessment,
    RiskLevel,
    RiskReason,
    RiskReasonType,
    ServiceInfo,
    ServiceStatus,
    SpeedReason,
    StaleCommunicationReason,
    WeatherReason,
    level_for_score,
)
from .telemetry_models import EcoEvent, Position, Vehicle, WeatherObservation

__all__ = [
    "AssessmentWithService",
    "CriticalStaleCommunicationReason",
    "EcoEvent",
    "EcoEventReason",
    "FleetCycleResult",
    "FuelAnomalyResult",
    "FuelAnomalyStatus",
    "FuelRiskResult",
    "FuelSeverity",
    "FuelSnapshot",
    "Position",
    "PriorityQueueItem",
    "RiskAssessment",
    "RiskLevel",
    "RiskReason",
    "RiskReasonType",
    "SensorPoint",
    "ServiceInfo",
    "ServiceStatus",
    "SpeedReason",
    "StaleCommunicationReason",
    "Vehicle",
    "WeatherObservation",
    "WeatherReason",
    "level_for_score",
]
