"""Persistence gateway and the typed rows it returns."""

from enrollment_service.persistence.gateway import PersistenceGateway
from enrollment_service.persistence.rows import (
    CompletionCounts,
    EnrollmentRow,
    EnrollmentWithCourseRow,
    ProgressRow,
)


__all__ = [
    "CompletionCounts",
    "EnrollmentRow",
    "EnrollmentWithCourseRow",
    "PersistenceGateway",
    "ProgressRow",
]
