"""Per-user reporting state."""

from dataclasses import dataclass, field

from pydantic import BaseModel

from watchtower.core.cooldown import CooldownGate
from watchtower.core.geofence import GeofenceMonitor


class Identity(BaseModel):
    """Authenticated user as supplied by the identity provider."""

    user_id: str
    email_verified: bool = False
    bypass_email_verification: bool = False

    @property
    def can_report(self) -> bool:
        return self.email_verified or self.bypass_email_verification


@dataclass
class ReportingSession:
    """Cooldown gate, geofence monitor and override flag for one user."""

    user_id: str
    monitor: GeofenceMonitor
    gate: CooldownGate = field(default_factory=CooldownGate)
    reporting_on_behalf: bool = False
