"""Exceptions raised by the reporting core and its persistence bridge."""


class WatchTowerError(Exception):
    """Base exception for WatchTower errors."""

    pass


class UnknownLocationError(WatchTowerError):
    """Raised when a location id is not in the registry."""

    def __init__(self, location_id: str):
        super().__init__(f"Unknown location: {location_id}")
        self.location_id = location_id


class ReportRejectedError(WatchTowerError):
    """
    A report attempt failed eligibility checks.

    Recoverable: nothing was mutated and the message is shown to the user.
    """

    reason: str = "rejected"
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OutOfBoundsError(ReportRejectedError):
    reason = "out_of_bounds"
    status_code = 403


class CooldownActiveError(ReportRejectedError):
    reason = "cooldown_active"
    status_code = 429


class NotEligibleError(ReportRejectedError):
    reason = "not_eligible"
    status_code = 403


class PersistenceWriteError(WatchTowerError):
    """Writing to the backing store failed. Local state stays authoritative."""

    pass


class HydrationError(WatchTowerError):
    """Loading location state from the backing store failed."""

    pass
