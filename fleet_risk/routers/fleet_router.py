"""
Fleet Router - Risk assessments, dispatch queue and vehicle detail

Endpoints:
- GET /api/health - Service status
- GET /api/groups - Upstream vehicle groups
- GET /api/fleet/{group_code}/assessments - Full aggregation cycle
- GET /api/fleet/{group_code}/priority-queue - Top-N dispatch queue
- GET /api/vehicle/{vehicle_code}/fuel-risk - Fuel window evaluation (cached)
- GET /api/vehicle/{vehicle_code}/fuel-anomaly - Recent fuel drop classification
- GET /api/vehicle/{vehicle_code}/service - Maintenance status

Read-only: every score and status comes from the orchestrators, nothing is
recomputed here.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from fleet_risk import __version__
from fleet_risk.models import (
    FleetCycleResult,
    FuelAnomalyResult,
    FuelRiskResult,
    PriorityQueueItem,
    ServiceInfo,
)
from fleet_risk.orchestrators import FleetAggregator, VehicleDetailService
from fleet_risk.repositories import UpstreamError, VehicleRepository
from fleet_risk.settings import Settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Fleet Risk"])

_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


# ═══════════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════════════════════


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_aggregator(request: Request) -> FleetAggregator:
    return request.app.state.aggregator


def get_vehicle_detail(request: Request) -> VehicleDetailService:
    return request.app.state.vehicle_detail


def get_vehicle_repo(request: Request) -> VehicleRepository:
    return request.app.state.vehicle_repo


def _validate_code(code: str, kind: str) -> str:
    if not code or not _CODE_PATTERN.match(code):
        raise HTTPException(status_code=400, detail=f"Invalid {kind} parameter")
    return code


def _upstream_http_error(e: UpstreamError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={
            "error": "Upstream API error",
            "status": e.status_code,
            "message": e.body or str(e),
        },
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> Dict[str, Any]:
    """Liveness plus configuration warnings."""
    return {
        "status": "ok",
        "version": __version__,
        "warnings": settings.validate(),
    }


@router.get("/groups")
async def list_groups(
    vehicle_repo: VehicleRepository = Depends(get_vehicle_repo),
) -> List[Dict[str, Any]]:
    try:
        return await vehicle_repo.get_groups()
    except UpstreamError as e:
        raise _upstream_http_error(e)


@router.get("/fleet/{group_code}/assessments", response_model=FleetCycleResult)
async def get_assessments(
    group_code: str,
    weather: Optional[bool] = Query(None, description="Count weather points"),
    aggregator: FleetAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
):
    """
    Run one aggregation cycle for the group.

    Returns every assessed vehicle with its maintenance status, the
    dispatch queue and the ids of vehicles dropped this cycle.
    """
    _validate_code(group_code, "groupCode")
    weather_enabled = settings.weather.enabled if weather is None else weather
    try:
        return await aggregator.run_cycle(group_code, weather_enabled=weather_enabled)
    except UpstreamError as e:
        raise _upstream_http_error(e)


@router.get(
    "/fleet/{group_code}/priority-queue", response_model=List[PriorityQueueItem]
)
async def get_priority_queue(
    group_code: str,
    weather: Optional[bool] = Query(None, description="Count weather points"),
    aggregator: FleetAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_app_settings),
):
    _validate_code(group_code, "groupCode")
    weather_enabled = settings.weather.enabled if weather is None else weather
    try:
        result = await aggregator.run_cycle(group_code, weather_enabled=weather_enabled)
    except UpstreamError as e:
        raise _upstream_http_error(e)
    return list(result.priority_queue)


@router.get("/vehicle/{vehicle_code}/fuel-risk", response_model=FuelRiskResult)
async def get_fuel_risk(
    vehicle_code: str,
    refresh: bool = False,
    detail: VehicleDetailService = Depends(get_vehicle_detail),
):
    _validate_code(vehicle_code, "vehicleCode")
    try:
        return await detail.get_fuel_risk(vehicle_code, refresh=refresh)
    except UpstreamError as e:
        raise _upstream_http_error(e)


@router.get("/vehicle/{vehicle_code}/fuel-anomaly", response_model=FuelAnomalyResult)
async def get_fuel_anomaly(
    vehicle_code: str,
    detail: VehicleDetailService = Depends(get_vehicle_detail),
):
    _validate_code(vehicle_code, "vehicleCode")
    try:
        return await detail.get_fuel_anomaly(vehicle_code)
    except UpstreamError as e:
        raise _upstream_http_error(e)


@router.get("/vehicle/{vehicle_code}/service", response_model=ServiceInfo)
async def get_service_info(
    vehicle_code: str,
    odometer: Optional[float] = Query(None, ge=0),
    detail: VehicleDetailService = Depends(get_vehicle_detail),
):
    _validate_code(vehicle_code, "vehicleCode")
    return detail.get_service_info(vehicle_code, odometer)
