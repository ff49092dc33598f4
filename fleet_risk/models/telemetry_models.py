"""
Telemetry Input Models
======================

Read-only records received from the upstream GPS API: vehicles, eco-driving
events and weather observations. Upstream payloads use PascalCase keys
(``Code``, ``LastPositionTimestamp`` ...); these are accepted as validation
aliases while serialization always uses the snake_case field names.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive upstream timestamps are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Position(BaseModel):
    """Latitude/longitude pair. (0, 0) is the "no fix" sentinel."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(0.0, validation_alias=AliasChoices("Latitude", "latitude"))
    longitude: float = Field(
        0.0, validation_alias=AliasChoices("Longitude", "longitude")
    )

    @property
    def is_sentinel(self) -> bool:
        return self.latitude == 0.0 and self.longitude == 0.0


def _parse_position(value: Any) -> Any:
    """Missing or blank coordinates mean the vehicle has no fix."""
    if value is None or isinstance(value, Position):
        return value
    if isinstance(value, dict):
        lat = value.get("Latitude", value.get("latitude"))
        lon = value.get("Longitude", value.get("longitude"))
        if lat in (None, "") or lon in (None, ""):
            return None
    return value


class Vehicle(BaseModel):
    """A fleet vehicle as returned by the roster endpoint."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(validation_alias=AliasChoices("Code", "code"), min_length=1)
    name: str = Field("", validation_alias=AliasChoices("Name", "name"))
    plate: str = Field("", validation_alias=AliasChoices("SPZ", "plate"))
    speed: float = Field(0.0, ge=0, validation_alias=AliasChoices("Speed", "speed"))
    last_position_timestamp: datetime = Field(
        validation_alias=AliasChoices(
            "LastPositionTimestamp", "last_position_timestamp"
        )
    )
    last_position: Optional[Position] = Field(
        None, validation_alias=AliasChoices("LastPosition", "last_position")
    )
    odometer: float = Field(
        0.0, ge=0, validation_alias=AliasChoices("Odometer", "odometer")
    )

    @field_validator("name", "plate", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("speed", "odometer", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return 0.0 if value is None else value

    @field_validator("last_position", mode="before")
    @classmethod
    def _blank_position(cls, value):
        return _parse_position(value)

    @field_validator("last_position_timestamp")
    @classmethod
    def _utc_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def has_fix(self) -> bool:
        return self.last_position is not None and not self.last_position.is_sentinel


class EcoEvent(BaseModel):
    """One eco-driving event (harsh braking, over-revving, ...)."""

    model_config = ConfigDict(frozen=True)

    event_type: int = Field(0, validation_alias=AliasChoices("EventType", "event_type"))
    event_value: float = Field(
        0.0, validation_alias=AliasChoices("EventValue", "event_value")
    )
    timestamp: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("Timestamp", "timestamp")
    )
    position: Optional[Position] = Field(
        None, validation_alias=AliasChoices("Position", "position")
    )
    severity: int = Field(
        0, ge=0, validation_alias=AliasChoices("EventSeverity", "severity")
    )
    speed: float = Field(0.0, validation_alias=AliasChoices("Speed", "speed"))

    @field_validator("severity", mode="before")
    @classmethod
    def _whole_severity(cls, value):
        # fractional severities round up
        if isinstance(value, float) and math.isfinite(value) and value >= 0:
            return math.ceil(value)
        return value

    @field_validator("position", mode="before")
    @classmethod
    def _blank_position(cls, value):
        return _parse_position(value)

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class WeatherObservation(BaseModel):
    """Current weather at a vehicle's position. Any field may be unknown."""

    model_config = ConfigDict(frozen=True)

    temperature_c: Optional[float] = None
    wind_speed_kmh: Optional[float] = None
    precipitation_mm: Optional[float] = None
    weather_code: Optional[int] = None  # WMO code
    observed_at: Optional[datetime] = None
