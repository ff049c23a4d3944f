"""Schemas for the progress API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from enrollment_service.enrollments.models import EnrollmentStatus
from enrollment_service.enrollments.schemas import reject_bool
from enrollment_service.progress.models import ProgressStatus


PROGRESS_UPDATED = "Progress updated successfully"


class ProgressUpdate(BaseModel):
    """Schema for reporting progress on one section."""

    module_id: int = Field(..., gt=0, description="ID of the module")
    section_id: int = Field(..., gt=0, description="ID of the section")
    status: ProgressStatus = Field(..., description="Progress status")

    @field_validator("module_id", "section_id", mode="before")
    @classmethod
    def reject_bool_ids(cls, value: Any) -> Any:
        return reject_bool(value)


class ProgressUpdateResponse(BaseModel):
    """Acknowledgement of a progress report."""

    message: str = PROGRESS_UPDATED


class SectionProgressResponse(BaseModel):
    """Schema for one recorded section."""

    module_id: int
    section_id: int
    status: ProgressStatus
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProgressSummaryResponse(BaseModel):
    """Schema for an enrollment's progress summary."""

    enrollment_id: int
    status: EnrollmentStatus
    completed_at: datetime | None
    total_sections: int
    completed_sections: int
    progress_percentage: int = Field(..., ge=0, le=100)
    sections: list[SectionProgressResponse]
