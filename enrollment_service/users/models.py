from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from enrollment_service.database.base import Base


__all__ = ["User"]


class User(Base):
    """User read model; only existence is checked by this service."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
