"""StoredLocation model: the durable mirror of a location's report state."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from watchtower.database import Base


class StoredLocation(Base):
    """
    One document per parking location.

    Written after every report and every expiry (last write wins); read once
    at startup to hydrate the in-memory registry.
    """

    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # report_count mirrors len(recent_reports) as of the last write
    report_count: Mapped[int] = mapped_column(Integer, server_default="0", nullable=False)
    recent_reports: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    sort_order: Mapped[int] = mapped_column(Integer, server_default="0", nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredLocation {self.id}: {self.report_count} reports>"
