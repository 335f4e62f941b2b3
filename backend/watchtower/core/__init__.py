"""Reporting core: geofence, registry, ledger, cooldown and engine."""

from watchtower.core.cooldown import CooldownGate
from watchtower.core.engine import ReportingEngine, ReportReceipt, Severity, severity_for
from watchtower.core.geofence import CampusBoundary, GeofenceMonitor, GeofenceStatus, Position
from watchtower.core.ledger import PurgeResult, ReportLedger
from watchtower.core.notices import NoticeBus
from watchtower.core.registry import SEED_LOCATIONS, Location, LocationRegistry
from watchtower.core.session import Identity, ReportingSession

__all__ = [
    "SEED_LOCATIONS",
    "CampusBoundary",
    "CooldownGate",
    "GeofenceMonitor",
    "GeofenceStatus",
    "Identity",
    "Location",
    "LocationRegistry",
    "NoticeBus",
    "Position",
    "PurgeResult",
    "ReportLedger",
    "ReportReceipt",
    "ReportingEngine",
    "ReportingSession",
    "Severity",
    "severity_for",
]
