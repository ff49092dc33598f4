"""
Fleet Risk API

Read-only JSON surface over the aggregation layer.

Run with:
    uvicorn fleet_risk.main:app --port 3001
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from fleet_risk import __version__
from fleet_risk.config_helper import close_repositories, setup_architecture
from fleet_risk.routers import fleet_router
from fleet_risk.settings import Settings, get_settings
from fleet_risk.structured_logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.logging.level, settings.logging.format)
        for warning in settings.validate():
            logger.warning(warning)

        repositories, _, aggregator, vehicle_detail = setup_architecture(settings)
        app.state.aggregator = aggregator
        app.state.vehicle_detail = vehicle_detail
        app.state.vehicle_repo = repositories["vehicle"]
        logger.info(f"Fleet Risk API v{__version__} ready")

        yield

        await close_repositories(repositories)
        logger.info("Shutting down Fleet Risk API")

    app = FastAPI(
        title="Fleet Risk API",
        description="Explainable vehicle risk scores, maintenance status and dispatch queue.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(fleet_router)
    return app


app = create_app()
