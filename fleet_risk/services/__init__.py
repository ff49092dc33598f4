"""Service layer for scoring and ranking logic."""

from .fuel_anomaly_detector import FuelAnomalyDetector
from .fuel_risk_cache import FuelRiskCache
from .priority_ranker import PriorityRanker
from .risk_scorer import RiskScorer
from .service_status import MaintenanceSource, ServiceStatusCalculator
from .weather_risk import WeatherContribution, WeatherRiskAdapter

__all__ = [
    "FuelAnomalyDetector",
    "FuelRiskCache",
    "MaintenanceSource",
    "PriorityRanker",
    "RiskScorer",
    "ServiceStatusCalculator",
    "WeatherContribution",
    "WeatherRiskAdapter",
]
