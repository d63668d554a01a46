"""API routers for GeoDisaster."""

from app.routers.dashboard import router as dashboard_router
from app.routers.events import router as events_router
from app.routers.features import router as features_router

__all__ = ["dashboard_router", "events_router", "features_router"]
