from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


class EventAssignment(Base):
    """A person placed on an event position.

    status: NULL (assigned, not invited) -> invited -> accepted/declined.
    """

    __tablename__ = "event_assignments"
    __table_args__ = (
        UniqueConstraint("position_id", "profile_id", name="uq_event_assignment_profile"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    position_id: Mapped[int] = mapped_column(ForeignKey("event_positions.id", ondelete="CASCADE"), index=True)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    assigned_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    invited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    position = relationship("EventPosition", back_populates="assignments")
    profile = relationship("Profile", foreign_keys=[profile_id])
