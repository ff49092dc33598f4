"""
Tests for RiskScorer
Speed and staleness tiers, eco aggregation, weather gating, fail-safe
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from fleet_risk.models import (
    EcoEvent,
    RiskLevel,
    RiskReasonType,
    WeatherObservation,
    level_for_score,
)
from fleet_risk.services import RiskScorer
from tests.fixtures.fleet_fixtures import NOW, make_vehicle


@pytest.fixture
def scorer():
    return RiskScorer(clock=lambda: NOW)


def eco(*severities):
    return [EcoEvent(event_type=1, severity=s) for s in severities]


class TestSpeedTiers:
    @pytest.mark.parametrize(
        "speed,points,reason_type",
        [
            (131, 4, RiskReasonType.SPEED_EXTREME),
            (130, 3, RiskReasonType.SPEED_HIGH),
            (111, 3, RiskReasonType.SPEED_HIGH),
            (110, 2, RiskReasonType.SPEED_ABOVE_LIMIT),
            (96, 2, RiskReasonType.SPEED_ABOVE_LIMIT),
            (95, 1, RiskReasonType.SPEED_SLIGHTLY_ELEVATED),
            (85.5, 1, RiskReasonType.SPEED_SLIGHTLY_ELEVATED),
        ],
    )
    def test_tier_matches(self, scorer, speed, points, reason_type):
        got, reason = scorer.speed_points(speed)
        assert got == points
        assert reason.type == reason_type
        assert reason.value == speed

    @pytest.mark.parametrize("speed", [0, 50, 85])
    def test_normal_speed_has_no_reason(self, scorer, speed):
        assert scorer.speed_points(speed) == (0, None)


class TestStaleness:
    def test_over_six_hours_is_critical(self, scorer):
        points, reason = scorer.staleness_points(400)
        assert points == 6
        assert reason.type == RiskReasonType.NO_UPDATE_CRITICAL
        assert reason.value == 400

    def test_exactly_360_minutes_is_not_critical(self, scorer):
        points, reason = scorer.staleness_points(360.0)
        assert points == 4
        assert reason.type == RiskReasonType.NO_UPDATE
        assert reason.value == 360

    def test_reason_carries_floored_minutes(self, scorer):
        points, reason = scorer.staleness_points(61.9)
        assert points == 2
        assert reason.value == 61

    def test_just_over_fifteen_minutes(self, scorer):
        points, reason = scorer.staleness_points(15.5)
        assert points == 1
        assert reason.value == 15

    def test_fifteen_minutes_is_fresh(self, scorer):
        assert scorer.staleness_points(15.0) == (0, None)

    def test_future_timestamp_gives_no_reason(self, scorer):
        vehicle = make_vehicle(minutes_ago=-30)
        assessment = scorer.score(vehicle, now=NOW)
        assert assessment.reasons_of(
            RiskReasonType.NO_UPDATE, RiskReasonType.NO_UPDATE_CRITICAL
        ) == ()


class TestEcoEvents:
    def test_severities_are_summed_into_one_reason(self, scorer):
        points, reason = scorer.eco_points(eco(1, 2, 3))
        assert points == 6
        assert reason.value == 6
        assert reason.count == 3

    def test_no_events(self, scorer):
        assert scorer.eco_points([]) == (0, None)

    def test_zero_severity_events_add_nothing(self, scorer):
        assert scorer.eco_points(eco(0, 0)) == (0, None)


class TestLevels:
    @pytest.mark.parametrize(
        "score,level",
        [
            (0, RiskLevel.OK),
            (2, RiskLevel.OK),
            (3, RiskLevel.WARNING),
            (5, RiskLevel.WARNING),
            (6, RiskLevel.CRITICAL),
            (14, RiskLevel.CRITICAL),
        ],
    )
    def test_level_for_score(self, score, level):
        assert level_for_score(score) == level


class TestScore:
    def test_speeding_and_silent_vehicle(self, scorer, speeding_silent_vehicle):
        assessment = scorer.score(speeding_silent_vehicle, [], now=NOW)

        assert assessment.risk_score == 10
        assert assessment.risk_level == RiskLevel.CRITICAL
        assert [r.type for r in assessment.reasons] == [
            RiskReasonType.SPEED_EXTREME,
            RiskReasonType.NO_UPDATE_CRITICAL,
        ]
        assert assessment.reasons[1].value == 400

    def test_extreme_speed_with_eco_event(self, scorer):
        vehicle = make_vehicle(speed=140, minutes_ago=10)
        assessment = scorer.score(vehicle, eco(2), now=NOW)

        assert assessment.risk_score == 6
        assert assessment.risk_level == RiskLevel.CRITICAL
        speed_reason, eco_reason = assessment.reasons
        assert speed_reason.type == RiskReasonType.SPEED_EXTREME
        assert speed_reason.value == 140
        assert eco_reason.type == RiskReasonType.ECO_EVENT
        assert (eco_reason.value, eco_reason.count) == (2, 1)

    def test_silent_vehicle_at_normal_speed(self, scorer):
        vehicle = make_vehicle(speed=60, minutes_ago=400)
        assessment = scorer.score(vehicle, now=NOW)

        assert assessment.risk_score == 6
        assert assessment.risk_level == RiskLevel.CRITICAL
        (reason,) = assessment.reasons
        assert reason.type == RiskReasonType.NO_UPDATE_CRITICAL
        assert reason.value == 400

    def test_eco_events_alone_reach_warning(self, scorer):
        vehicle = make_vehicle(speed=50, minutes_ago=10)
        assessment = scorer.score(vehicle, eco(1, 2), now=NOW)

        assert assessment.risk_score == 3
        assert assessment.risk_level == RiskLevel.WARNING
        assert len(assessment.reasons) == 1
        assert assessment.reasons[0].count == 2

    def test_quiet_vehicle_is_ok(self, scorer, moving_vehicle):
        assessment = scorer.score(moving_vehicle, now=NOW)
        assert assessment.risk_score == 0
        assert assessment.risk_level == RiskLevel.OK
        assert assessment.reasons == ()

    def test_identity_fields_are_copied(self, scorer, moving_vehicle):
        assessment = scorer.score(moving_vehicle, now=NOW)
        assert assessment.vehicle_id == moving_vehicle.code
        assert assessment.vehicle_name == moving_vehicle.name
        assert assessment.plate == moving_vehicle.plate
        assert assessment.position == moving_vehicle.last_position
        assert assessment.calculated_at == NOW

    def test_clock_used_when_now_missing(self, scorer):
        vehicle = make_vehicle(minutes_ago=20)
        assessment = scorer.score(vehicle)
        assert assessment.calculated_at == NOW
        assert assessment.reasons[0].value == 20

    def test_deterministic(self, scorer, speeding_silent_vehicle):
        first = scorer.score(speeding_silent_vehicle, eco(2), now=NOW)
        second = scorer.score(speeding_silent_vehicle, eco(2), now=NOW)
        assert first == second


class TestWeather:
    storm = WeatherObservation(precipitation_mm=8.0, wind_speed_kmh=10.0)

    def test_weather_reported_but_not_counted_when_disabled(self, scorer, moving_vehicle):
        assessment = scorer.score(moving_vehicle, weather=self.storm, now=NOW)

        assert assessment.risk_score == 0
        assert assessment.risk_level == RiskLevel.OK
        (reason,) = assessment.reasons_of(RiskReasonType.WEATHER)
        assert reason.value == 2
        assert reason.counted is False
        assert reason.factors == ("heavy_precipitation",)

    def test_weather_counted_when_enabled(self, scorer, moving_vehicle):
        assessment = scorer.score(
            moving_vehicle, weather=self.storm, weather_enabled=True, now=NOW
        )
        assert assessment.risk_score == 2
        assert assessment.reasons[-1].counted is True

    def test_no_weather_reason_without_observation(self, scorer, moving_vehicle):
        assessment = scorer.score(moving_vehicle, weather_enabled=True, now=NOW)
        assert assessment.reasons_of(RiskReasonType.WEATHER) == ()


class TestFailSafe:
    def test_broken_vehicle_gets_zero_ok_assessment(self, scorer):
        broken = SimpleNamespace(
            code="V-BROKEN",
            name="Broken",
            plate="",
            speed=20.0,
            last_position_timestamp="not-a-date",
            last_position=None,
        )

        assessment = scorer.score(broken, now=NOW)

        assert assessment.vehicle_id == "V-BROKEN"
        assert assessment.risk_score == 0
        assert assessment.risk_level == RiskLevel.OK
        assert assessment.reasons == ()
        assert assessment.speed == 20.0

    def test_minutes_since_update(self, scorer):
        assert scorer.minutes_since_update(NOW - timedelta(minutes=90), NOW) == 90
