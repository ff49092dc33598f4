"""HTTP routers."""

from .fleet_router import router as fleet_router

__all__ = ["fleet_router"]
