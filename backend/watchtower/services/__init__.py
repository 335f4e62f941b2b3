"""Services backing the reporting core."""

from watchtower.services.persistence import PersistenceBridge

__all__ = ["PersistenceBridge"]
