from sqlalchemy import Boolean, Column, ForeignKey, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


ministry_member_roles = Table(
    "ministry_member_roles",
    Base.metadata,
    Column("member_id", ForeignKey("ministry_members.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("ministry_roles.id", ondelete="CASCADE"), primary_key=True),
)


class MinistryMember(Base):
    __tablename__ = "ministry_members"
    __table_args__ = (
        UniqueConstraint("ministry_id", "profile_id", name="uq_ministry_member"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    ministry_id: Mapped[int] = mapped_column(ForeignKey("ministries.id", ondelete="CASCADE"), index=True)
    profile_id: Mapped[int] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    ministry = relationship("Ministry", back_populates="members")
    profile = relationship("Profile")
    roles = relationship("MinistryRole", secondary=ministry_member_roles, order_by="MinistryRole.id")
