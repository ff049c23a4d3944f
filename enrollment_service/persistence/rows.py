"""Typed rows returned by the persistence gateway.

Query results are decoded into these immutable records at the gateway
boundary; nothing above the gateway sees SQLAlchemy ``Row`` objects.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (SQLite returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True, slots=True)
class EnrollmentRow:
    """A row of the ``enrollments`` table."""

    id: int
    user_id: int
    course_id: int
    status: str
    enrolled_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "EnrollmentRow":
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            status=row.status,
            enrolled_at=ensure_utc_aware(row.enrolled_at),
            completed_at=ensure_utc_aware(row.completed_at),
        )


@dataclass(frozen=True, slots=True)
class EnrollmentWithCourseRow:
    """An enrollment joined with the title of its course."""

    id: int
    user_id: int
    course_id: int
    status: str
    enrolled_at: datetime
    completed_at: datetime | None
    course_title: str

    @classmethod
    def from_row(cls, row: Any) -> "EnrollmentWithCourseRow":
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            status=row.status,
            enrolled_at=ensure_utc_aware(row.enrolled_at),
            completed_at=ensure_utc_aware(row.completed_at),
            course_title=row.course_title,
        )


@dataclass(frozen=True, slots=True)
class ProgressRow:
    """A row of the ``progress`` table."""

    enrollment_id: int
    module_id: int
    section_id: int
    status: str
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "ProgressRow":
        return cls(
            enrollment_id=row.enrollment_id,
            module_id=row.module_id,
            section_id=row.section_id,
            status=row.status,
            updated_at=ensure_utc_aware(row.updated_at),
        )


@dataclass(frozen=True, slots=True)
class CompletionCounts:
    """Inputs of the course-completion check for one enrollment."""

    required: int
    completed: int

    @property
    def is_complete(self) -> bool:
        """A course without sections can never be completed."""
        return self.required > 0 and self.completed >= self.required

    @property
    def percentage(self) -> int:
        if self.required == 0:
            return 0
        return min(100, round(self.completed * 100 / self.required))
