"""
Risk Data Models
================

Assessments, reasons, maintenance info and the dispatch queue. Everything
here is immutable once built: the aggregator is the only producer and the
API layer only serializes.

RiskReason is a discriminated union on ``type``; each variant carries its
own payload (speed in km/h, whole minutes, severity sum + count, weather
points + factors).
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .telemetry_models import Position


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class RiskLevel(str, Enum):
    """Coarse risk bucket derived from the total score."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class ServiceStatus(str, Enum):
    """Maintenance-due classification."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class RiskReasonType(str, Enum):
    SPEED_EXTREME = "speedExtreme"
    SPEED_HIGH = "speedHigh"
    SPEED_ABOVE_LIMIT = "speedAboveLimit"
    SPEED_SLIGHTLY_ELEVATED = "speedSlightlyElevated"
    NO_UPDATE = "noUpdate"
    NO_UPDATE_CRITICAL = "noUpdateCritical"
    ECO_EVENT = "ecoEvent"
    WEATHER = "weather"


CRITICAL_SCORE = 6
WARNING_SCORE = 3


def level_for_score(score: int) -> RiskLevel:
    """critical >= 6, warning >= 3, else ok."""
    if score >= CRITICAL_SCORE:
        return RiskLevel.CRITICAL
    if score >= WARNING_SCORE:
        return RiskLevel.WARNING
    return RiskLevel.OK


# ══════════════════════════════════════════════════════════════════════════════
# RISK REASONS
# ══════════════════════════════════════════════════════════════════════════════


class _Reason(BaseModel):
    model_config = ConfigDict(frozen=True)


class SpeedReason(_Reason):
    type: Literal[
        RiskReasonType.SPEED_EXTREME,
        RiskReasonType.SPEED_HIGH,
        RiskReasonType.SPEED_ABOVE_LIMIT,
        RiskReasonType.SPEED_SLIGHTLY_ELEVATED,
    ]
    value: float  # km/h


class StaleCommunicationReason(_Reason):
    type: Literal[RiskReasonType.NO_UPDATE] = RiskReasonType.NO_UPDATE
    value: int  # whole minutes since last position


class CriticalStaleCommunicationReason(_Reason):
    type: Literal[RiskReasonType.NO_UPDATE_CRITICAL] = RiskReasonType.NO_UPDATE_CRITICAL
    value: int  # whole minutes since last position


class EcoEventReason(_Reason):
    type: Literal[RiskReasonType.ECO_EVENT] = RiskReasonType.ECO_EVENT
    value: int  # severity sum
    count: int = Field(ge=1)


class WeatherReason(_Reason):
    type: Literal[RiskReasonType.WEATHER] = RiskReasonType.WEATHER
    value: int  # points
    counted: bool
    factors: Tuple[str, ...] = ()


RiskReason = Annotated[
    Union[
        SpeedReason,
        StaleCommunicationReason,
        CriticalStaleCommunicationReason,
        EcoEventReason,
        WeatherReason,
    ],
    Field(discriminator="type"),
]

STALE_REASON_TYPES = (RiskReasonType.NO_UPDATE, RiskReasonType.NO_UPDATE_CRITICAL)


# ══════════════════════════════════════════════════════════════════════════════
# ASSESSMENTS
# ══════════════════════════════════════════════════════════════════════════════


class RiskAssessment(BaseModel):
    """Risk score for one vehicle in one aggregation cycle."""

    model_config = ConfigDict(frozen=True)

    vehicle_id: str
    vehicle_name: str = ""
    plate: str = ""
    speed: float = 0.0
    risk_score: int = Field(ge=0)
    risk_level: RiskLevel
    reasons: Tuple[RiskReason, ...] = ()
    calculated_at: datetime
    position: Position = Position()

    @model_validator(mode="after")
    def _level_matches_score(self):
        if self.risk_level != level_for_score(self.risk_score):
            raise ValueError(
                f"risk_level {self.risk_level.value} does not match score {self.risk_score}"
            )
        return self

    def reasons_of(self, *types: RiskReasonType) -> Tuple[RiskReason, ...]:
        return tuple(r for r in self.reasons if r.type in types)


class ServiceInfo(BaseModel):
    """Maintenance interval position for one vehicle."""

    model_config = ConfigDict(frozen=True)

    odometer: int = Field(ge=0)
    remaining_km: int = Field(ge=0)
    next_service_at: int = Field(ge=0)
    service_status: ServiceStatus
    progress_percent: int = Field(ge=0, le=100)


class AssessmentWithService(BaseModel):
    """The record the presentation layer consumes, one per vehicle."""

    model_config = ConfigDict(frozen=True)

    assessment: RiskAssessment
    service: ServiceInfo

    @property
    def vehicle_id(self) -> str:
        return self.assessment.vehicle_id


class PriorityQueueItem(BaseModel):
    """One slot of the dispatch queue."""

    model_config = ConfigDict(frozen=True)

    assessment: RiskAssessment
    rank: int = Field(ge=1)
    priority_score: float
    minutes_without_communication: int = Field(ge=0)
    predicted_to_worsen: bool


class FleetCycleResult(BaseModel):
    """Output of one complete aggregation cycle. Replaces the previous one."""

    model_config = ConfigDict(frozen=True)

    group_code: Optional[str] = None
    generated_at: datetime
    weather_enabled: bool = False
    assessments: Tuple[AssessmentWithService, ...] = ()
    priority_queue: Tuple[PriorityQueueItem, ...] = ()
    failed_vehicles: Tuple[str, ...] = ()

    @computed_field
    @property
    def summary(self) -> Dict[str, int]:
        counts = {level.value: 0 for level in RiskLevel}
        for item in self.assessments:
            counts[item.assessment.risk_level.value] += 1
        counts["total"] = len(self.assessments)
        counts["failed"] = len(self.failed_vehicles)
        return counts
