from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


class Event(Base):
    """A scheduled church event (service, rehearsal, meeting)."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    church_id: Mapped[int] = mapped_column(ForeignKey("churches.id"), index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # draft/published/cancelled
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")

    responsible_person_id: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    church = relationship("Church")
    responsible_person = relationship("Profile", foreign_keys=[responsible_person_id])
    positions = relationship(
        "EventPosition",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventPosition.sort_order",
    )
