"""Database model for per-section progress."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from enrollment_service.database.base import Base


__all__ = ["Progress", "ProgressStatus"]


class ProgressStatus(str, Enum):
    """Section progress status."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Progress(Base):
    """Progress of one enrollment within one section."""

    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "module_id", "section_id", name="uq_progress_enrollment_section"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    enrollment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Not foreign keys: reports are accepted for any module/section id
    module_id: Mapped[int] = mapped_column(Integer, nullable=False)
    section_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ProgressStatus.NOT_STARTED.value)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<Progress(enrollment_id={self.enrollment_id}, section_id={self.section_id}, status={self.status})>"
