"""Database models."""

from watchtower.models.stored_location import StoredLocation

__all__ = ["StoredLocation"]
