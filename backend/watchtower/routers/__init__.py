"""API routers."""

from watchtower.routers.health import router as health_router
from watchtower.routers.locations import router as locations_router
from watchtower.routers.session import router as session_router

__all__ = ["health_router", "locations_router", "session_router"]
