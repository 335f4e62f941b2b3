"""Health endpoint."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from watchtower.core.engine import ReportingEngine
from watchtower.routers.deps import get_engine

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    location_count: int
    active_reports: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    engine: Annotated[ReportingEngine, Depends(get_engine)],
) -> HealthResponse:
    """Health check endpoint with live report totals."""
    locations = engine.locations()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        location_count=len(locations),
        active_reports=sum(loc.report_count for loc in locations),
    )
