"""Per-location report timestamps: append and decay."""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import NamedTuple

from watchtower.core.registry import Location


class PurgeResult(NamedTuple):
    location: Location
    expired: tuple[datetime, ...]

    @property
    def removed(self) -> int:
        return len(self.expired)


class ReportLedger:
    """
    Pure operations over a Location's report list.

    Records stay in append order, which is also chronological order.
    """

    def append(self, location: Location, timestamp: datetime) -> Location:
        if location.recent_reports and timestamp < location.recent_reports[-1]:
            # Never let a clock step backwards reorder the ledger.
            timestamp = location.recent_reports[-1]
        return replace(location, recent_reports=(*location.recent_reports, timestamp))

    def purge_expired(
        self, location: Location, now: datetime, decay_window: timedelta
    ) -> PurgeResult:
        """Drop every record at least decay_window old."""
        kept: list[datetime] = []
        expired: list[datetime] = []
        for ts in location.recent_reports:
            if now - ts >= decay_window:
                expired.append(ts)
            else:
                kept.append(ts)

        if not expired:
            return PurgeResult(location, ())
        return PurgeResult(replace(location, recent_reports=tuple(kept)), tuple(expired))
