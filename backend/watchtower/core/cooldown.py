"""Per-user global rate limit on reports."""

from datetime import datetime
from threading import Lock


class CooldownGate:
    """
    One gate per user, shared by every location.

    While active, all report attempts from the user are refused.
    """

    def __init__(self):
        self._lock = Lock()
        self._active = False
        self._activated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def activated_at(self) -> datetime | None:
        return self._activated_at

    def try_acquire(self, now: datetime) -> bool:
        """Activate the gate unless it is already active."""
        with self._lock:
            if self._active:
                return False
            self._active = True
            self._activated_at = now
            return True

    def release(self) -> None:
        with self._lock:
            self._active = False
            self._activated_at = None
