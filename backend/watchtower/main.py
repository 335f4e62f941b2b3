"""FastAPI application for the WatchTower backend."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from watchtower.config import get_settings
from watchtower.core.engine import ReportingEngine
from watchtower.core.errors import ReportRejectedError
from watchtower.core.geofence import CampusBoundary
from watchtower.core.notices import NoticeBus
from watchtower.database import check_db_ready
from watchtower.rate_limit import limiter
from watchtower.routers import health_router, locations_router, session_router
from watchtower.services.persistence import PersistenceBridge
from watchtower.tasks.scheduler import (
    APSchedulerExpiryScheduler,
    add_sweep_job,
    setup_scheduler,
    shutdown_scheduler,
)
from watchtower.websocket import websocket_router
from watchtower.websocket.manager import manager as ws_manager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(scheduler, bridge: PersistenceBridge | None) -> ReportingEngine:
    """Wire a ReportingEngine from settings."""
    bus = NoticeBus()
    bus.subscribe(ws_manager.handle_event)
    return ReportingEngine(
        scheduler=scheduler,
        bridge=bridge,
        bus=bus,
        boundary=CampusBoundary.from_settings(settings),
        decay_window=timedelta(seconds=settings.decay_window_seconds),
        cooldown_window=timedelta(seconds=settings.cooldown_window_seconds),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting WatchTower backend...")

    # The database only mirrors state; startup continues without it.
    bridge: PersistenceBridge | None = PersistenceBridge()
    try:
        await check_db_ready()
        logger.info("Database ready")
    except Exception as e:
        logger.error(f"Database not ready, running without persistence: {e}")
        bridge = None

    aps = setup_scheduler()
    engine = build_engine(APSchedulerExpiryScheduler(aps), bridge)
    await engine.hydrate()
    add_sweep_job(aps, engine)
    app.state.engine = engine
    logger.info(f"Engine ready with {len(engine.locations())} locations")

    yield

    # Shutdown
    await engine.drain()
    shutdown_scheduler()
    logger.info("WatchTower backend shut down")


# Create FastAPI app
app = FastAPI(
    title="WatchTower API",
    description="Crowdsourced live parking activity for campus lots",
    version="0.1.0",
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReportRejectedError)
async def report_rejected_handler(request: Request, exc: ReportRejectedError):
    """Turn eligibility failures into client errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include routers
app.include_router(health_router)
app.include_router(locations_router, prefix=settings.api_v1_prefix)
app.include_router(session_router, prefix=settings.api_v1_prefix)
app.include_router(websocket_router)  # WebSocket at /ws/locations


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "WatchTower API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "watchtower.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
