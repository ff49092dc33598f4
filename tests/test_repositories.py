"""
Tests for the repository layer
Upstream HTTP is replaced with httpx.MockTransport
"""

import json
import logging
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from fleet_risk.repositories import (
    EcoEventRepository,
    GpsApiClient,
    SensorRepository,
    UpstreamError,
    VehicleRepository,
    WeatherRepository,
)
from fleet_risk.repositories.gps_api_client import format_api_time
from fleet_risk.repositories.sensor_repository import merge_into_snapshots
from fleet_risk.settings import GpsApiSettings, WeatherSettings
from tests.fixtures.fleet_fixtures import NOW

BASE_URL = "https://gps.test/api"


def gps_client(handler):
    settings = GpsApiSettings(base_url=BASE_URL, user="u", password="p")
    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return GpsApiClient(settings, client=http)


def json_response(payload, status_code=200):
    return httpx.Response(status_code, json=payload)


class TestGpsApiClient:
    def test_format_api_time(self):
        value = datetime(2026, 3, 1, 8, 5, 59, tzinfo=timezone.utc)
        assert format_api_time(value) == "2026-03-01T08:05"

    @pytest.mark.asyncio
    async def test_error_status_raises_upstream_error(self):
        client = gps_client(lambda request: httpx.Response(503, text="maintenance"))

        with pytest.raises(UpstreamError) as exc_info:
            await client.get_groups()

        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "maintenance"

    @pytest.mark.asyncio
    async def test_transport_failure_raises_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await gps_client(handler).get_groups()
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_invalid_json_raises_upstream_error(self):
        client = gps_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamError):
            await client.get_groups()


class TestVehicleRepository:
    @pytest.mark.asyncio
    async def test_roster_parsing(self, roster_payload):
        requested = []

        def handler(request):
            requested.append(request.url.path)
            return json_response(roster_payload)

        repo = VehicleRepository(gps_client(handler))
        vehicles = await repo.get_vehicles("FLEET1")

        assert requested == ["/api/vehicles/group/FLEET1"]
        assert [v.code for v in vehicles] == ["V-3001", "V-3002"]

        first, second = vehicles
        assert first.speed == 88
        assert first.plate == "1AB 0001"
        assert first.odometer == 152340.5
        assert first.last_position_timestamp == datetime(2026, 3, 1, 11, 58, tzinfo=timezone.utc)
        assert first.has_fix is True

        assert second.name == ""
        assert second.speed == 0
        assert second.last_position is None
        assert second.has_fix is False

    @pytest.mark.asyncio
    async def test_roster_error_propagates(self):
        repo = VehicleRepository(gps_client(lambda request: httpx.Response(500)))
        with pytest.raises(UpstreamError) as exc_info:
            await repo.get_vehicles("FLEET1")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unexpected_roster_payload(self):
        repo = VehicleRepository(gps_client(lambda request: json_response({"error": "x"})))
        with pytest.raises(UpstreamError):
            await repo.get_vehicles("FLEET1")

    @pytest.mark.asyncio
    async def test_groups(self):
        groups = [{"Code": "FLEET1", "Name": "Prague"}]
        repo = VehicleRepository(gps_client(lambda request: json_response(groups)))
        assert await repo.get_groups() == groups


class TestEcoEventRepository:
    @pytest.mark.asyncio
    async def test_events_in_lookback_window(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return json_response(
                [
                    {"EventType": 3, "EventValue": 0.4, "EventSeverity": 2, "Speed": 61},
                    {"EventType": 5, "EventSeverity": 1},
                    {"EventType": 7, "EventSeverity": -4},
                ]
            )

        repo = EcoEventRepository(gps_client(handler), lookback_hours=24)
        events = await repo.get_events("V-1", now=NOW)

        assert seen["path"] == "/api/vehicle/V-1/eco-driving-events"
        assert seen["params"] == {"from": "2026-02-28T12:00", "to": "2026-03-01T12:00"}
        assert [e.severity for e in events] == [2, 1]

    @pytest.mark.asyncio
    async def test_fractional_severity_rounds_up(self):
        payload = [{"EventType": 3, "EventSeverity": 1.5}, {"EventType": 4, "EventSeverity": 2.0}]
        repo = EcoEventRepository(gps_client(lambda request: json_response(payload)))

        events = await repo.get_events("V-1", now=NOW)

        assert [e.severity for e in events] == [2, 2]

    @pytest.mark.asyncio
    async def test_skipped_event_is_logged_as_warning(self, caplog):
        payload = [{"EventType": 3, "EventSeverity": -1}]
        repo = EcoEventRepository(gps_client(lambda request: json_response(payload)))

        with caplog.at_level(logging.WARNING, logger="fleet_risk.repositories.eco_event_repository"):
            events = await repo.get_events("V-1", now=NOW)

        assert events == []
        assert "Skipping malformed eco event for V-1" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_degrades_to_no_events(self):
        repo = EcoEventRepository(gps_client(lambda request: httpx.Response(502)))
        assert await repo.get_events("V-1", now=NOW) == []


class TestSensorRepository:
    sensor_payload = [
        {
            "Name": "FuelActualVolume",
            "data": [
                {"t": "2026-03-01T11:01:00", "v": 44.0},
                {"t": "2026-03-01T11:00:00", "v": 50.0},
            ],
        },
        {"name": "speed", "Data": [{"t": "2026-03-01T11:01:00", "v": 0}]},
        {"Name": "FuelConsumedTotal", "data": [{"v": 1.0}, {"t": "2026-03-01T11:00:00", "v": 100.0}]},
    ]

    def test_merge_into_snapshots(self):
        snapshots = merge_into_snapshots(self.sensor_payload)

        assert [s.timestamp.minute for s in snapshots] == [0, 1]
        assert snapshots[0].fuel_volume == 50.0
        assert snapshots[0].fuel_consumed_total == 100.0
        assert snapshots[0].speed is None
        assert snapshots[1].fuel_volume == 44.0
        assert snapshots[1].speed == 0

    @pytest.mark.asyncio
    async def test_fuel_snapshots(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return json_response(self.sensor_payload)

        repo = SensorRepository(gps_client(handler))
        snapshots = await repo.get_fuel_snapshots("V-1", window_minutes=60, now=NOW)

        assert seen["path"].startswith("/api/vehicle/V-1/sensors/")
        assert seen["params"]["from"] == "2026-03-01T11:00"
        assert len(snapshots) == 2

    @pytest.mark.asyncio
    async def test_fuel_and_speed_points(self):
        repo = SensorRepository(gps_client(lambda request: json_response(self.sensor_payload)))

        fuel, speed = await repo.get_fuel_and_speed_points("V-1", now=NOW)

        assert [p.v for p in fuel] == [44.0, 50.0]
        assert [p.v for p in speed] == [0]

    @pytest.mark.asyncio
    async def test_sensor_error_propagates(self):
        repo = SensorRepository(gps_client(lambda request: httpx.Response(500)))
        with pytest.raises(UpstreamError):
            await repo.get_fuel_snapshots("V-1", now=NOW)


class TestWeatherRepository:
    def repo(self, handler):
        settings = WeatherSettings(base_url="https://weather.test/v1/forecast")
        return WeatherRepository(
            settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

    @pytest.mark.asyncio
    async def test_current_observation(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            body = {
                "current": {
                    "time": "2026-03-01T12:00",
                    "temperature_2m": -2.5,
                    "precipitation": 1.4,
                    "wind_speed_10m": 41.0,
                    "weather_code": 73,
                }
            }
            return httpx.Response(200, content=json.dumps(body))

        observation = await self.repo(handler).get_observation(50.0755, 14.4378)

        assert seen["params"]["latitude"] == "50.0755"
        assert seen["params"]["wind_speed_unit"] == "kmh"
        assert observation.temperature_c == -2.5
        assert observation.precipitation_mm == 1.4
        assert observation.wind_speed_kmh == 41.0
        assert observation.weather_code == 73
        assert observation.observed_at == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_error_gives_none(self):
        repo = self.repo(lambda request: httpx.Response(500))
        assert await repo.get_observation(50.0, 14.0) is None

    @pytest.mark.asyncio
    async def test_missing_current_block_gives_none(self):
        repo = self.repo(lambda request: httpx.Response(200, json={"hourly": {}}))
        assert await repo.get_observation(50.0, 14.0) is None

    @pytest.mark.asyncio
    async def test_invalid_json_gives_none(self):
        repo = self.repo(lambda request: httpx.Response(200, text="not json"))
        assert await repo.get_observation(50.0, 14.0) is None

    @pytest.mark.asyncio
    async def test_explicit_offset_is_kept(self):
        body = {"current": {"time": "2026-03-01T13:00+01:00", "temperature_2m": 4.0}}
        repo = self.repo(lambda request: httpx.Response(200, json=body))

        observation = await repo.get_observation(50.0, 14.0)

        assert observation.observed_at == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert observation.observed_at.utcoffset() == timedelta(hours=1)
