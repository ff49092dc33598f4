"""
Fleet Aggregator

Fan-out/fan-in orchestration of one aggregation cycle:

    roster ──► one task per vehicle ──► AssessmentWithService list ──► priority queue
                 ├─ eco events ┐ (concurrent)
                 ├─ weather   ─┘ (only with a fix and weather enabled)
                 ├─ RiskScorer
                 └─ ServiceStatusCalculator

Per-vehicle failures are isolated: the failing vehicle is logged and dropped,
sibling tasks keep running and are never cancelled. Records leave this layer
fully built and immutable; the presentation layer only reads them.

Each call produces a complete new result; nothing is merged with previous
cycles.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from fleet_risk.models import (
    AssessmentWithService,
    EcoEvent,
    FleetCycleResult,
    Vehicle,
    WeatherObservation,
)
from fleet_risk.repositories import (
    EcoEventRepository,
    VehicleRepository,
    WeatherRepository,
)
from fleet_risk.services import (
    MaintenanceSource,
    PriorityRanker,
    RiskScorer,
    ServiceStatusCalculator,
)
from fleet_risk.structured_logging import set_correlation_id

logger = logging.getLogger(__name__)


@dataclass
class AggregatorConfig:
    """Configuration for FleetAggregator."""

    max_concurrency: int = 0  # 0 = unbounded
    priority_queue_size: int = 5


class FleetAggregator:
    """
    Combines roster, eco events and weather into per-vehicle assessments.

    Services:
    - RiskScorer: risk score, level and reasons
    - ServiceStatusCalculator (any MaintenanceSource): maintenance status
    - PriorityRanker: dispatch queue

    Repositories:
    - VehicleRepository: roster
    - EcoEventRepository: eco-driving events
    - WeatherRepository: weather at the vehicle position
    """

    VERSION = "1.0.0"

    def __init__(
        self,
        eco_repo: EcoEventRepository,
        vehicle_repo: Optional[VehicleRepository] = None,
        weather_repo: Optional[WeatherRepository] = None,
        risk_scorer: Optional[RiskScorer] = None,
        maintenance: Optional[MaintenanceSource] = None,
        priority_ranker: Optional[PriorityRanker] = None,
        config: Optional[AggregatorConfig] = None,
    ):
        """
        Initialize FleetAggregator with dependencies.

        Args:
            eco_repo: Eco-driving event source
            vehicle_repo: Roster source (required for run_cycle only)
            weather_repo: Weather source (None = weather never fetched)
            risk_scorer: Optional RiskScorer (will create if None)
            maintenance: Optional maintenance source (hash mock if None)
            priority_ranker: Optional PriorityRanker (will create if None)
            config: Optional AggregatorConfig (defaults if None)
        """
        self.config = config or AggregatorConfig()

        self.eco_repo = eco_repo
        self.vehicle_repo = vehicle_repo
        self.weather_repo = weather_repo

        self.risk_scorer = risk_scorer or RiskScorer()
        self.maintenance = maintenance or ServiceStatusCalculator()
        self.priority_ranker = priority_ranker or PriorityRanker(
            top_n=self.config.priority_queue_size
        )

        logger.info(f"FleetAggregator v{self.VERSION} initialized")

    # ------------------------------------------------------------------
    # Per-vehicle task
    # ------------------------------------------------------------------

    async def _fetch_weather(
        self, vehicle: Vehicle, weather_enabled: bool
    ) -> Optional[WeatherObservation]:
        if not weather_enabled or self.weather_repo is None or not vehicle.has_fix:
            return None
        position = vehicle.last_position
        return await self.weather_repo.get_observation(
            position.latitude, position.longitude
        )

    async def assess_vehicle(
        self,
        vehicle: Vehicle,
        weather_enabled: bool,
        now: Optional[datetime] = None,
    ) -> AssessmentWithService:
        """
        Fetch inputs for one vehicle and build its record.

        Raises whatever the data sources raise; assess_fleet() isolates it.
        """
        eco_events, weather = await asyncio.gather(
            self.eco_repo.get_events(vehicle.code),
            self._fetch_weather(vehicle, weather_enabled),
        )
        events: Sequence[EcoEvent] = eco_events or []

        assessment = self.risk_scorer.score(
            vehicle,
            events,
            weather=weather,
            weather_enabled=weather_enabled,
            now=now,
        )
        service = self.maintenance.service_status(vehicle.code, vehicle.odometer)

        return AssessmentWithService(assessment=assessment, service=service)

    # ------------------------------------------------------------------
    # Fan-out / fan-in
    # ------------------------------------------------------------------

    async def _assess_fleet(
        self,
        vehicles: Sequence[Vehicle],
        weather_enabled: bool,
        now: Optional[datetime],
    ) -> Tuple[List[AssessmentWithService], List[str]]:
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrency)
            if self.config.max_concurrency > 0
            else None
        )

        async def bounded(vehicle: Vehicle) -> AssessmentWithService:
            if semaphore is None:
                return await self.assess_vehicle(vehicle, weather_enabled, now)
            async with semaphore:
                return await self.assess_vehicle(vehicle, weather_enabled, now)

        results = await asyncio.gather(
            *(bounded(vehicle) for vehicle in vehicles), return_exceptions=True
        )

        records: List[AssessmentWithService] = []
        failed: List[str] = []
        for vehicle, result in zip(vehicles, results):
            if isinstance(result, AssessmentWithService):
                records.append(result)
            elif isinstance(result, Exception):
                failed.append(vehicle.code)
                logger.error(
                    f"Dropping vehicle {vehicle.code} from cycle: {result}",
                    exc_info=(type(result), result, result.__traceback__),
                )
            else:
                # BaseException (e.g. cancellation) must propagate
                raise result

        return records, failed

    async def assess_fleet(
        self,
        vehicles: Sequence[Vehicle],
        weather_enabled: bool = False,
        now: Optional[datetime] = None,
    ) -> List[AssessmentWithService]:
        """
        One AssessmentWithService per vehicle that could be assessed, in
        roster order. Vehicles whose task failed are left out.
        """
        records, _ = await self._assess_fleet(vehicles, weather_enabled, now)
        return records

    async def run_cycle(
        self,
        group_code: str,
        weather_enabled: bool = False,
        now: Optional[datetime] = None,
    ) -> FleetCycleResult:
        """
        Complete aggregation cycle for a vehicle group.

        Args:
            group_code: Upstream group identifier
            weather_enabled: Count weather points in the scores
            now: Evaluation instant (defaults to the current UTC time)

        Returns:
            FleetCycleResult with assessments, priority queue and the ids of
            dropped vehicles

        Raises:
            UpstreamError: the roster could not be fetched
        """
        if self.vehicle_repo is None:
            raise RuntimeError("run_cycle requires a vehicle repository")

        set_correlation_id()
        started = datetime.now(timezone.utc)
        now = now or started

        vehicles = await self.vehicle_repo.get_vehicles(group_code)
        logger.info(f"Aggregating {len(vehicles)} vehicles for group {group_code}")

        records, failed = await self._assess_fleet(vehicles, weather_enabled, now)
        queue = self.priority_ranker.rank([r.assessment for r in records])

        result = FleetCycleResult(
            group_code=group_code,
            generated_at=now,
            weather_enabled=weather_enabled,
            assessments=tuple(records),
            priority_queue=tuple(queue),
            failed_vehicles=tuple(failed),
        )

        elapsed_ms = (datetime.now(timezone.utc) - started).total_seconds() * 1000
        logger.info(
            f"Cycle finished: {len(records)} assessed, {len(failed)} dropped",
            extra={"group_code": group_code, "duration_ms": round(elapsed_ms, 1)},
        )
        return result
