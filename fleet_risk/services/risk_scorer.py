"""
Risk Scorer Service

Central scoring function of the fleet view. Combines four independent
signals into an integer risk score, a risk level and a list of reasons a
dispatcher can read back:

- Speed: tiered, one reason at most
- Communication staleness: tiered on minutes since the last position
- Eco-driving events: severity sum, one aggregated reason
- Weather: bounded points, counted only when weather scoring is enabled

Tiers use strict greater-than and are evaluated high to low; the first
match wins. Levels: critical >= 6, warning >= 3, else ok. Nothing is
remembered between calls.

Example Usage:
    scorer = RiskScorer()
    assessment = scorer.score(vehicle, eco_events)
    # assessment.risk_score = 6, assessment.risk_level = RiskLevel.CRITICAL
"""

import math
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from fleet_risk.models import (
    CriticalStaleCommunicationReason,
    EcoEvent,
    EcoEventReason,
    Position,
    RiskAssessment,
    RiskLevel,
    RiskReason,
    RiskReasonType,
    SpeedReason,
    StaleCommunicationReason,
    Vehicle,
    WeatherObservation,
    WeatherReason,
    level_for_score,
)
from fleet_risk.services.weather_risk import WeatherRiskAdapter

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskScorer:
    """
    Explainable per-vehicle risk scoring.

    score() never raises: an unscored vehicle must stay visible, so any
    internal fault yields a zero-score OK assessment without reasons.
    """

    # (speed greater than km/h, points, reason)
    SPEED_TIERS: Tuple[Tuple[float, int, RiskReasonType], ...] = (
        (130, 4, RiskReasonType.SPEED_EXTREME),
        (110, 3, RiskReasonType.SPEED_HIGH),
        (95, 2, RiskReasonType.SPEED_ABOVE_LIMIT),
        (85, 1, RiskReasonType.SPEED_SLIGHTLY_ELEVATED),
    )

    # (minutes greater than, points, critical?)
    STALENESS_TIERS: Tuple[Tuple[float, int, bool], ...] = (
        (360, 6, True),
        (180, 4, False),
        (60, 2, False),
        (15, 1, False),
    )

    def __init__(
        self,
        weather_adapter: Optional[WeatherRiskAdapter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.weather_adapter = weather_adapter or WeatherRiskAdapter()
        self.clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Individual signals
    # ------------------------------------------------------------------

    def speed_points(self, speed: float) -> Tuple[int, Optional[SpeedReason]]:
        for threshold, points, reason_type in self.SPEED_TIERS:
            if speed > threshold:
                return points, SpeedReason(type=reason_type, value=speed)
        return 0, None

    def minutes_since_update(self, last_update: datetime, now: datetime) -> float:
        return (now - last_update).total_seconds() / 60

    def staleness_points(self, minutes_since: float) -> Tuple[int, Optional[RiskReason]]:
        """
        Points for a communication gap.

        The unfloored value is compared against the thresholds (exactly
        360.0 minutes is NOT critical); the reason carries the floored value.
        """
        minutes = math.floor(minutes_since)
        for threshold, points, critical in self.STALENESS_TIERS:
            if minutes_since > threshold:
                if critical:
                    return points, CriticalStaleCommunicationReason(value=minutes)
                return points, StaleCommunicationReason(value=minutes)
        return 0, None

    def eco_points(
        self, eco_events: Sequence[EcoEvent]
    ) -> Tuple[int, Optional[EcoEventReason]]:
        total = sum(event.severity for event in eco_events)
        if total == 0:
            return 0, None
        return total, EcoEventReason(value=total, count=len(eco_events))

    def weather_points(
        self, weather: Optional[WeatherObservation], weather_enabled: bool
    ) -> Tuple[int, Optional[WeatherReason]]:
        """
        Weather is always evaluated so the UI can show what it would add,
        but it only counts toward the score when enabled.
        """
        contribution = self.weather_adapter.contribution(weather)
        if contribution.points <= 0:
            return 0, None
        reason = WeatherReason(
            value=contribution.points,
            counted=weather_enabled,
            factors=contribution.factors,
        )
        return (contribution.points if weather_enabled else 0), reason

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(
        self,
        vehicle: Vehicle,
        eco_events: Optional[Sequence[EcoEvent]] = None,
        weather: Optional[WeatherObservation] = None,
        weather_enabled: bool = False,
        now: Optional[datetime] = None,
    ) -> RiskAssessment:
        """
        Score one vehicle.

        Args:
            vehicle: Vehicle record from the roster
            eco_events: Eco-driving events in the lookback window
            weather: Current weather at the vehicle position, if known
            weather_enabled: Add weather points to the total
            now: Evaluation instant (defaults to the scorer's clock)

        Returns:
            RiskAssessment; a zero-score OK assessment on internal failure
        """
        now = now or self.clock()
        try:
            return self._score(vehicle, eco_events or (), weather, weather_enabled, now)
        except Exception as e:
            logger.error(
                "Risk scoring failed, returning fail-safe assessment",
                vehicle_id=getattr(vehicle, "code", None),
                error=str(e),
                exc_info=True,
            )
            return self.fail_safe_assessment(vehicle, now)

    def _score(
        self,
        vehicle: Vehicle,
        eco_events: Sequence[EcoEvent],
        weather: Optional[WeatherObservation],
        weather_enabled: bool,
        now: datetime,
    ) -> RiskAssessment:
        risk_score = 0
        reasons: List[RiskReason] = []

        signals = (
            self.speed_points(vehicle.speed),
            self.staleness_points(
                self.minutes_since_update(vehicle.last_position_timestamp, now)
            ),
            self.eco_points(eco_events),
            self.weather_points(weather, weather_enabled),
        )
        for points, reason in signals:
            risk_score += points
            if reason is not None:
                reasons.append(reason)

        risk_level = level_for_score(risk_score)

        logger.debug(
            "Risk score calculated",
            vehicle_id=vehicle.code,
            score=risk_score,
            level=risk_level.value,
            reasons=[r.type.value for r in reasons],
        )

        return RiskAssessment(
            vehicle_id=vehicle.code,
            vehicle_name=vehicle.name,
            plate=vehicle.plate,
            speed=vehicle.speed,
            risk_score=risk_score,
            risk_level=risk_level,
            reasons=tuple(reasons),
            calculated_at=now,
            position=vehicle.last_position or Position(),
        )

    def fail_safe_assessment(self, vehicle: Vehicle, now: datetime) -> RiskAssessment:
        position = getattr(vehicle, "last_position", None)
        speed = getattr(vehicle, "speed", 0.0)
        return RiskAssessment(
            vehicle_id=str(getattr(vehicle, "code", "") or ""),
            vehicle_name=str(getattr(vehicle, "name", "") or ""),
            plate=str(getattr(vehicle, "plate", "") or ""),
            speed=speed if isinstance(speed, (int, float)) else 0.0,
            risk_score=0,
            risk_level=RiskLevel.OK,
            reasons=(),
            calculated_at=now,
            position=position if isinstance(position, Position) else Position(),
        )
