"""
Fuel Data Models
================

Sensor points, merged fuel snapshots and the two fuel verdicts:

- FuelRiskResult: rule-based evaluation of a whole snapshot window
- FuelAnomalyResult: classification of the most recent fuel drop
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .telemetry_models import as_utc


class FuelSeverity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FuelAnomalyStatus(str, Enum):
    NORMAL = "normal"
    ANOMALY = "anomaly"
    INSUFFICIENT_DATA = "insufficient_data"


class SensorPoint(BaseModel):
    """A single ``{t, v}`` reading of one sensor."""

    model_config = ConfigDict(frozen=True)

    t: datetime
    v: Optional[float] = None

    @field_validator("t")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)


class FuelSnapshot(BaseModel):
    """All sensor values known at one timestamp. Fields may be missing."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    fuel_volume: Optional[float] = None  # L
    fuel_consumed_total: Optional[float] = None  # L, cumulative
    speed: Optional[float] = None  # km/h


class FuelRiskResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    suspicious_drop: bool = False
    drop_amount: Optional[float] = None
    description: Optional[str] = None
    severity: FuelSeverity = FuelSeverity.NONE


class FuelAnomalyResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: FuelAnomalyStatus
    severity: Optional[FuelSeverity] = None  # HIGH or LOW when status is ANOMALY
    reason: Optional[str] = None
    fuel_drop: Optional[float] = None
    duration_minutes: Optional[float] = None
    risk_impact: int = Field(0, ge=0)
