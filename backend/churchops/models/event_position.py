from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


class EventPosition(Base):
    """A slot to staff on an event, owned by one ministry.

    If role_id is set, only ministry members holding that role are eligible.
    """

    __tablename__ = "event_positions"

    id: Mapped[int] = mapped_column(primary_key=True)

    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), index=True)
    ministry_id: Mapped[int | None] = mapped_column(ForeignKey("ministries.id", ondelete="SET NULL"), index=True)
    role_id: Mapped[int | None] = mapped_column(ForeignKey("ministry_roles.id", ondelete="SET NULL"), nullable=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity_needed: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="positions")
    ministry = relationship("Ministry")
    role = relationship("MinistryRole")
    assignments = relationship(
        "EventAssignment",
        back_populates="position",
        cascade="all, delete-orphan",
        order_by="EventAssignment.id",
    )
