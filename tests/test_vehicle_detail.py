"""
Tests for VehicleDetailService
Fuel risk caching, recent-drop classification and service info
"""

from unittest.mock import AsyncMock

import pytest

from fleet_risk.models import FuelAnomalyStatus, FuelSeverity
from fleet_risk.orchestrators import VehicleDetailService
from fleet_risk.repositories import UpstreamError
from fleet_risk.services import FuelRiskCache
from tests.fixtures.fleet_fixtures import make_point, make_snapshot


@pytest.fixture
def sensor_repo():
    repo = AsyncMock()
    repo.get_fuel_snapshots.return_value = [
        make_snapshot(0, fuel_volume=50.0, speed=0),
        make_snapshot(1, fuel_volume=44.0, speed=0),
    ]
    repo.get_fuel_and_speed_points.return_value = (
        [make_point(0, 50.0), make_point(5, 46.0)],
        [make_point(5, 0)],
    )
    return repo


@pytest.fixture
def cache():
    return FuelRiskCache()


@pytest.fixture
def detail(sensor_repo, cache):
    return VehicleDetailService(sensor_repo, cache=cache)


class TestFuelRisk:
    @pytest.mark.asyncio
    async def test_result_is_cached_per_vehicle(self, detail, sensor_repo, cache):
        first = await detail.get_fuel_risk("V-1")
        second = await detail.get_fuel_risk("V-1")

        assert first.severity == FuelSeverity.HIGH
        assert second is first
        assert sensor_repo.get_fuel_snapshots.await_count == 1
        assert "V-1" in cache

    @pytest.mark.asyncio
    async def test_window_passed_to_repository(self, sensor_repo, cache):
        detail = VehicleDetailService(sensor_repo, cache=cache, fuel_window_minutes=30)
        await detail.get_fuel_risk("V-1")
        sensor_repo.get_fuel_snapshots.assert_awaited_once_with("V-1", window_minutes=30)

    @pytest.mark.asyncio
    async def test_refresh_refetches(self, detail, sensor_repo):
        await detail.get_fuel_risk("V-1")
        sensor_repo.get_fuel_snapshots.return_value = []

        refreshed = await detail.get_fuel_risk("V-1", refresh=True)

        assert refreshed.severity == FuelSeverity.NONE
        assert sensor_repo.get_fuel_snapshots.await_count == 2

    @pytest.mark.asyncio
    async def test_vehicles_are_cached_separately(self, detail, cache):
        await detail.get_fuel_risk("V-1")
        await detail.get_fuel_risk("V-2")
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_upstream_failure_is_not_cached(self, detail, sensor_repo, cache):
        sensor_repo.get_fuel_snapshots.side_effect = UpstreamError("down", status_code=500)

        with pytest.raises(UpstreamError):
            await detail.get_fuel_risk("V-1")
        assert "V-1" not in cache


class TestFuelAnomaly:
    @pytest.mark.asyncio
    async def test_classifies_recent_drop(self, detail, sensor_repo):
        result = await detail.get_fuel_anomaly("V-1")

        assert result.status == FuelAnomalyStatus.ANOMALY
        assert result.severity == FuelSeverity.LOW
        sensor_repo.get_fuel_and_speed_points.assert_awaited_once_with(
            "V-1", window_minutes=90
        )

    @pytest.mark.asyncio
    async def test_never_cached(self, detail, sensor_repo):
        await detail.get_fuel_anomaly("V-1")
        await detail.get_fuel_anomaly("V-1")
        assert sensor_repo.get_fuel_and_speed_points.await_count == 2


class TestServiceInfo:
    def test_service_info(self, detail):
        info = detail.get_service_info("a")
        assert info.odometer == 10_097
        assert info.remaining_km == 6

    def test_service_info_with_odometer(self, detail):
        assert detail.get_service_info("a", 123_456).odometer == 123_456


class TestFuelRiskCache:
    def test_invalidate_and_clear(self):
        from fleet_risk.models import FuelRiskResult

        cache = FuelRiskCache()
        cache.set("V-1", FuelRiskResult())
        cache.set("V-2", FuelRiskResult())

        cache.invalidate("V-1")
        assert cache.get("V-1") is None
        assert len(cache) == 1

        cache.invalidate("V-UNKNOWN")
        cache.clear()
        assert len(cache) == 0
