"""Enrollment API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from enrollment_service.enrollments.dependencies import EnrollmentManagerDep, UserIdParam
from enrollment_service.enrollments.models import EnrollmentStatus
from enrollment_service.enrollments.schemas import EnrollmentCreate, EnrollmentListItem, EnrollmentResponse
from enrollment_service.middleware.security import enrollment_route_limit


router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a user in a course",
    dependencies=[Depends(enrollment_route_limit)],
)
async def create_enrollment(
    payload: EnrollmentCreate,
    manager: EnrollmentManagerDep,
) -> EnrollmentResponse:
    """Enroll a user in a published course."""
    enrollment = await manager.enroll(payload.user_id, payload.course_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.get("/{user_id}", summary="Get all enrollments for a user")
async def list_user_enrollments(
    user_id: UserIdParam,
    manager: EnrollmentManagerDep,
    status_filter: Annotated[
        EnrollmentStatus | None,
        Query(alias="status", description="Filter enrollments by status"),
    ] = None,
) -> list[EnrollmentListItem]:
    """List a user's enrollments, newest first."""
    enrollments = await manager.list_for_user(user_id, status_filter)
    return [EnrollmentListItem.model_validate(e) for e in enrollments]
