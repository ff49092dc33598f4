"""
Weather Risk Adapter

Converts a weather observation into a bounded number of risk points.

Factors (summed, then capped at MAX_POINTS):
- Precipitation: > 5 mm -> 2, > 1 mm -> 1
- Wind: > 60 km/h -> 2, > 40 km/h -> 1
- Freezing temperature (<= 0 C) -> 1
- Hazardous WMO weather codes: thunderstorm / snow / freezing rain -> 2, fog -> 1

Unknown fields contribute nothing.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from fleet_risk.models import WeatherObservation

THUNDERSTORM_CODES = frozenset({95, 96, 99})
SNOW_CODES = frozenset({71, 73, 75, 77, 85, 86})
FREEZING_CODES = frozenset({56, 57, 66, 67})
FOG_CODES = frozenset({45, 48})


@dataclass(frozen=True)
class WeatherContribution:
    points: int = 0
    factors: Tuple[str, ...] = field(default_factory=tuple)


class WeatherRiskAdapter:
    """Pure weather -> points mapping."""

    MAX_POINTS = 3

    HEAVY_PRECIPITATION_MM = 5.0
    PRECIPITATION_MM = 1.0
    STORM_WIND_KMH = 60.0
    STRONG_WIND_KMH = 40.0
    FREEZING_C = 0.0

    def contribution(
        self, weather: Optional[WeatherObservation]
    ) -> WeatherContribution:
        if weather is None:
            return WeatherContribution()

        points = 0
        factors: List[str] = []

        if weather.precipitation_mm is not None:
            if weather.precipitation_mm > self.HEAVY_PRECIPITATION_MM:
                points += 2
                factors.append("heavy_precipitation")
            elif weather.precipitation_mm > self.PRECIPITATION_MM:
                points += 1
                factors.append("precipitation")

        if weather.wind_speed_kmh is not None:
            if weather.wind_speed_kmh > self.STORM_WIND_KMH:
                points += 2
                factors.append("storm_wind")
            elif weather.wind_speed_kmh > self.STRONG_WIND_KMH:
                points += 1
                factors.append("strong_wind")

        if weather.temperature_c is not None and weather.temperature_c <= self.FREEZING_C:
            points += 1
            factors.append("freezing")

        code = weather.weather_code
        if code in THUNDERSTORM_CODES:
            points += 2
            factors.append("thunderstorm")
        elif code in SNOW_CODES:
            points += 2
            factors.append("snow")
        elif code in FREEZING_CODES:
            points += 2
            factors.append("freezing_rain")
        elif code in FOG_CODES:
            points += 1
            factors.append("fog")

        return WeatherContribution(
            points=min(points, self.MAX_POINTS), factors=tuple(factors)
        )
