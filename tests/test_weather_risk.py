"""
Tests for WeatherRiskAdapter
"""

import pytest

from fleet_risk.models import WeatherObservation
from fleet_risk.services import WeatherRiskAdapter


@pytest.fixture
def adapter():
    return WeatherRiskAdapter()


class TestWeatherRiskAdapter:
    def test_no_observation(self, adapter):
        contribution = adapter.contribution(None)
        assert contribution.points == 0
        assert contribution.factors == ()

    def test_calm_weather(self, adapter):
        calm = WeatherObservation(
            temperature_c=18.0, wind_speed_kmh=12.0, precipitation_mm=0.0, weather_code=1
        )
        assert adapter.contribution(calm).points == 0

    def test_unknown_fields_contribute_nothing(self, adapter):
        assert adapter.contribution(WeatherObservation()).points == 0

    @pytest.mark.parametrize(
        "observation,points,factor",
        [
            (WeatherObservation(precipitation_mm=2.0), 1, "precipitation"),
            (WeatherObservation(precipitation_mm=6.0), 2, "heavy_precipitation"),
            (WeatherObservation(wind_speed_kmh=45.0), 1, "strong_wind"),
            (WeatherObservation(wind_speed_kmh=70.0), 2, "storm_wind"),
            (WeatherObservation(temperature_c=0.0), 1, "freezing"),
            (WeatherObservation(weather_code=95), 2, "thunderstorm"),
            (WeatherObservation(weather_code=73), 2, "snow"),
            (WeatherObservation(weather_code=66), 2, "freezing_rain"),
            (WeatherObservation(weather_code=45), 1, "fog"),
        ],
    )
    def test_single_factor(self, adapter, observation, points, factor):
        contribution = adapter.contribution(observation)
        assert contribution.points == points
        assert contribution.factors == (factor,)

    def test_just_above_freezing(self, adapter):
        assert adapter.contribution(WeatherObservation(temperature_c=0.5)).points == 0

    def test_points_are_capped(self, adapter):
        storm = WeatherObservation(
            precipitation_mm=10.0, wind_speed_kmh=70.0, weather_code=95
        )
        contribution = adapter.contribution(storm)

        assert contribution.points == WeatherRiskAdapter.MAX_POINTS
        assert contribution.factors == ("heavy_precipitation", "storm_wind", "thunderstorm")
