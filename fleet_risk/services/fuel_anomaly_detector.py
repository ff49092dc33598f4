"""
Fuel Anomaly Detector

Deterministic anomaly detection over fuel/speed sensor data. Pure functions,
no I/O: fetching and windowing belong to the sensor repository.

evaluate() - rules over a chronological FuelSnapshot window
(priority order, first match wins):
  1. Sudden drop while stationary  -> severity HIGH
  2. Abnormal consumption vs speed -> severity MEDIUM
  3. Nothing found                 -> severity NONE

classify_recent_drop() - looks only at the last two fuel readings and the
speed closest in time to the latest one:
  - stationary, drop > 5 L within 10 min -> anomaly / HIGH (impact 3)
  - stationary, 3 L <= drop <= 5 L       -> anomaly / LOW  (impact 1)
  - refuel, noise or moving              -> normal
"""

import math
from typing import List, Optional, Sequence

import structlog

from fleet_risk.models import (
    FuelAnomalyResult,
    FuelAnomalyStatus,
    FuelRiskResult,
    FuelSeverity,
    FuelSnapshot,
    SensorPoint,
)

logger = structlog.get_logger()


def round1(value: float) -> float:
    """One decimal, halves rounded up."""
    return math.floor(value * 10 + 0.5) / 10


class FuelAnomalyDetector:
    """Fuel theft / abnormal consumption rules."""

    # Minimum fuel drop (L) between two readings to be suspicious
    DROP_THRESHOLD_L = 5.0
    # Max speed (km/h) at which a vehicle counts as stationary
    STATIONARY_SPEED_KMH = 3.0
    # Consumption rate (L/h) above which consumption is abnormal
    ABNORMAL_RATE_LPH = 10.0
    # Speed (km/h) below which high consumption is anomalous
    LOW_SPEED_THRESHOLD_KMH = 10.0
    # One snapshot per minute is assumed when estimating the window length
    READINGS_PER_HOUR = 60

    # Recent-drop classifier
    HIGH_DROP_L = 5.0
    LOW_DROP_L = 3.0
    HIGH_DROP_MAX_MINUTES = 10.0
    HIGH_RISK_IMPACT = 3
    LOW_RISK_IMPACT = 1

    # ------------------------------------------------------------------
    # Snapshot window rules
    # ------------------------------------------------------------------

    def detect_sudden_drop(
        self, snapshots: Sequence[FuelSnapshot]
    ) -> Optional[FuelRiskResult]:
        """Rule 1: first consecutive pair with a large drop at standstill."""
        for prev, curr in zip(snapshots, snapshots[1:]):
            if prev.fuel_volume is None or curr.fuel_volume is None or curr.speed is None:
                continue

            drop = prev.fuel_volume - curr.fuel_volume
            if drop > self.DROP_THRESHOLD_L and curr.speed <= self.STATIONARY_SPEED_KMH:
                amount = round1(drop)
                return FuelRiskResult(
                    suspicious_drop=True,
                    drop_amount=amount,
                    description=f"Suspicious fuel loss - {amount} L while stationary",
                    severity=FuelSeverity.HIGH,
                )
        return None

    def detect_abnormal_consumption(
        self, snapshots: Sequence[FuelSnapshot]
    ) -> Optional[FuelRiskResult]:
        """Rule 2: cumulative consumption rate too high for the final speed."""
        first = snapshots[0]
        last = snapshots[-1]

        if (
            first.fuel_consumed_total is None
            or last.fuel_consumed_total is None
            or last.speed is None
        ):
            return None

        total_consumed = last.fuel_consumed_total - first.fuel_consumed_total
        duration_hours = len(snapshots) / self.READINGS_PER_HOUR
        rate = total_consumed / duration_hours if duration_hours > 0 else 0.0

        if rate > self.ABNORMAL_RATE_LPH and last.speed < self.LOW_SPEED_THRESHOLD_KMH:
            return FuelRiskResult(
                suspicious_drop=False,
                description=f"Abnormal fuel consumption - {round1(rate)} L/h at low speed",
                severity=FuelSeverity.MEDIUM,
            )
        return None

    def evaluate(self, snapshots: Sequence[FuelSnapshot]) -> FuelRiskResult:
        """
        Evaluate a chronological snapshot series.

        Requires at least two points; shorter series are severity NONE.

        Examples:
            >>> detector = FuelAnomalyDetector()
            >>> detector.evaluate([]).severity
            <FuelSeverity.NONE: 'none'>
        """
        if len(snapshots) < 2:
            return FuelRiskResult()

        result = (
            self.detect_sudden_drop(snapshots)
            or self.detect_abnormal_consumption(snapshots)
            or FuelRiskResult()
        )
        if result.severity != FuelSeverity.NONE:
            logger.info(
                "Fuel anomaly detected",
                severity=result.severity.value,
                drop_amount=result.drop_amount,
                points=len(snapshots),
            )
        return result

    # ------------------------------------------------------------------
    # Recent drop classifier
    # ------------------------------------------------------------------

    def classify_recent_drop(
        self,
        fuel_points: Sequence[SensorPoint],
        speed_points: Sequence[SensorPoint] = (),
    ) -> FuelAnomalyResult:
        """
        Classify the drop between the two most recent fuel readings.

        Args:
            fuel_points: Fuel volume readings (L), any order
            speed_points: Speed readings (km/h), any order

        Returns:
            FuelAnomalyResult (status NORMAL / ANOMALY / INSUFFICIENT_DATA)
        """
        fuel = self._valid_sorted(fuel_points)
        speeds = self._valid_sorted(speed_points)

        if len(fuel) < 2:
            return FuelAnomalyResult(status=FuelAnomalyStatus.INSUFFICIENT_DATA)

        prev, curr = fuel[-2], fuel[-1]
        fuel_drop = round(prev.v - curr.v, 2)

        # refuel or sensor noise
        if fuel_drop <= 0:
            return FuelAnomalyResult(status=FuelAnomalyStatus.NORMAL)

        duration_minutes = round((curr.t - prev.t).total_seconds() / 60, 1)
        if duration_minutes <= 0:
            return FuelAnomalyResult(status=FuelAnomalyStatus.INSUFFICIENT_DATA)

        current_speed = self._closest_value(speeds, curr)
        is_stationary = (
            current_speed is not None and current_speed < self.STATIONARY_SPEED_KMH
        )

        if (
            is_stationary
            and fuel_drop > self.HIGH_DROP_L
            and duration_minutes <= self.HIGH_DROP_MAX_MINUTES
        ):
            result = FuelAnomalyResult(
                status=FuelAnomalyStatus.ANOMALY,
                severity=FuelSeverity.HIGH,
                reason="Fuel loss while stationary",
                fuel_drop=fuel_drop,
                duration_minutes=duration_minutes,
                risk_impact=self.HIGH_RISK_IMPACT,
            )
        elif is_stationary and self.LOW_DROP_L <= fuel_drop <= self.HIGH_DROP_L:
            result = FuelAnomalyResult(
                status=FuelAnomalyStatus.ANOMALY,
                severity=FuelSeverity.LOW,
                reason="Minor fuel loss while stationary",
                fuel_drop=fuel_drop,
                duration_minutes=duration_minutes,
                risk_impact=self.LOW_RISK_IMPACT,
            )
        else:
            return FuelAnomalyResult(status=FuelAnomalyStatus.NORMAL)

        logger.info(
            "Recent fuel drop classified",
            severity=result.severity.value,
            fuel_drop=fuel_drop,
            duration_minutes=duration_minutes,
        )
        return result

    @staticmethod
    def _valid_sorted(points: Sequence[SensorPoint]) -> List[SensorPoint]:
        return sorted((p for p in points if p.v is not None), key=lambda p: p.t)

    @staticmethod
    def _closest_value(
        points: Sequence[SensorPoint], target: SensorPoint
    ) -> Optional[float]:
        if not points:
            return None
        closest = points[0]
        for point in points[1:]:
            # strict < keeps the earliest point on ties
            if abs((point.t - target.t).total_seconds()) < abs(
                (closest.t - target.t).total_seconds()
            ):
                closest = point
        return closest.v
