"""Schemas for the enrollments API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from enrollment_service.enrollments.models import EnrollmentStatus


def reject_bool(value: Any) -> Any:
    """Refuse JSON booleans for integer ids (pydantic would coerce ``true`` to 1)."""
    if isinstance(value, bool):
        msg = "must be an integer, not a boolean"
        raise ValueError(msg)
    return value


class EnrollmentCreate(BaseModel):
    """Schema for enrolling a user in a course."""

    user_id: int = Field(..., gt=0, description="ID of the user enrolling in the course")
    course_id: int = Field(..., gt=0, description="ID of the course to enroll in")

    @field_validator("user_id", "course_id", mode="before")
    @classmethod
    def reject_bool_ids(cls, value: Any) -> Any:
        return reject_bool(value)


class EnrollmentResponse(BaseModel):
    """Schema for a newly created enrollment."""

    id: int
    user_id: int
    course_id: int
    status: EnrollmentStatus
    enrolled_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrollmentListItem(EnrollmentResponse):
    """Schema for an enrollment in a user's enrollment list."""

    completed_at: datetime | None = None
    course_title: str
