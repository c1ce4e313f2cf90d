from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from churchops.core.db import Base


class Ministry(Base):
    __tablename__ = "ministries"

    id: Mapped[int] = mapped_column(primary_key=True)
    church_id: Mapped[int] = mapped_column(ForeignKey("churches.id"), index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)

    leader_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    leader = relationship("Profile")
    roles = relationship("MinistryRole", back_populates="ministry", cascade="all, delete-orphan")
    members = relationship("MinistryMember", back_populates="ministry", cascade="all, delete-orphan")


class MinistryRole(Base):
    __tablename__ = "ministry_roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    ministry_id: Mapped[int] = mapped_column(ForeignKey("ministries.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    ministry = relationship("Ministry", back_populates="roles")
