"""Progress tracking API endpoints."""

from fastapi import APIRouter

from enrollment_service.progress.dependencies import EnrollmentIdParam, ProgressTrackerDep
from enrollment_service.progress.schemas import (
    ProgressSummaryResponse,
    ProgressUpdate,
    ProgressUpdateResponse,
    SectionProgressResponse,
)


router = APIRouter(prefix="/enrollments", tags=["progress"])


@router.patch("/{enrollment_id}/progress", summary="Update progress for an enrollment")
async def update_progress(
    enrollment_id: EnrollmentIdParam,
    payload: ProgressUpdate,
    tracker: ProgressTrackerDep,
) -> ProgressUpdateResponse:
    """Record a section's progress.

    The response does not say whether the course was completed; fetch the
    progress summary to find out.
    """
    await tracker.update_progress(enrollment_id, payload.module_id, payload.section_id, payload.status)
    return ProgressUpdateResponse()


@router.get("/{enrollment_id}/progress", summary="Get progress summary for an enrollment")
async def get_progress(
    enrollment_id: EnrollmentIdParam,
    tracker: ProgressTrackerDep,
) -> ProgressSummaryResponse:
    """Return completion counts and recorded sections for an enrollment."""
    summary = await tracker.get_summary(enrollment_id)
    return ProgressSummaryResponse(
        enrollment_id=summary.enrollment.id,
        status=summary.enrollment.status,
        completed_at=summary.enrollment.completed_at,
        total_sections=summary.counts.required,
        completed_sections=summary.counts.completed,
        progress_percentage=summary.counts.percentage,
        sections=[SectionProgressResponse.model_validate(s) for s in summary.sections],
    )
