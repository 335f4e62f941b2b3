"""Pydantic schemas for parking locations and reports."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from watchtower.core.engine import ReportReceipt, Severity, severity_for
from watchtower.core.registry import Location


class Coordinates(BaseModel):
    """Geographic coordinates."""

    latitude: float
    longitude: float


class LocationOut(BaseModel):
    """Location response schema with its current severity tier."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    coordinates: Coordinates
    report_count: int
    recent_reports: list[datetime]
    severity: Severity

    @classmethod
    def from_location(cls, location: Location) -> "LocationOut":
        return cls(
            id=location.id,
            name=location.name,
            coordinates=Coordinates(
                latitude=location.latitude, longitude=location.longitude
            ),
            report_count=location.report_count,
            recent_reports=list(location.recent_reports),
            severity=severity_for(location.report_count),
        )


class LocationsResponse(BaseModel):
    """All locations in display order."""

    locations: list[LocationOut]


class ReportReceiptOut(BaseModel):
    """Result of an accepted report."""

    location: LocationOut
    reported_at: datetime
    expires_at: datetime
    cooldown_until: datetime

    @classmethod
    def from_receipt(cls, receipt: ReportReceipt) -> "ReportReceiptOut":
        return cls(
            location=LocationOut.from_location(receipt.location),
            reported_at=receipt.reported_at,
            expires_at=receipt.expires_at,
            cooldown_until=receipt.cooldown_until,
        )


class RejectionOut(BaseModel):
    """Error body for a rejected report."""

    detail: str
    reason: str
