from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from churchops.core.db import Base


class Church(Base):
    __tablename__ = "churches"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
