from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


class VolunteerUnavailability(Base):
    """Date range (inclusive on both ends) when a person can't serve."""

    __tablename__ = "volunteer_unavailability"

    id: Mapped[int] = mapped_column(primary_key=True)

    church_id: Mapped[int] = mapped_column(ForeignKey("churches.id"), index=True)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    profile = relationship("Profile")
