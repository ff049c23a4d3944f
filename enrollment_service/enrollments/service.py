"""Enrollment manager: creation and lookup of course enrollments."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from enrollment_service.enrollments.models import EnrollmentStatus
from enrollment_service.exceptions import ConflictError, ResourceNotFoundError
from enrollment_service.persistence import EnrollmentRow, EnrollmentWithCourseRow, PersistenceGateway


logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "User already enrolled in this course"


class EnrollmentManager:
    """Creates enrollments and answers enrollment queries."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway

    async def enroll(self, user_id: int, course_id: int) -> EnrollmentRow:
        """Enroll a user in a published course.

        Raises
        ------
            ResourceNotFoundError: The course does not exist or is not published.
            ConflictError: The user already has an enrollment for the course.
        """
        if not await self.gateway.is_course_published(course_id):
            logger.info(f"Enrollment rejected: course {course_id} not found or not published")
            raise ResourceNotFoundError("Course", course_id, "Course not found or not published")

        if await self.gateway.find_enrollment(user_id, course_id) is not None:
            logger.info(f"Enrollment rejected: user {user_id} already enrolled in course {course_id}")
            raise ConflictError(ALREADY_ENROLLED)

        try:
            enrollment = await self.gateway.insert_enrollment(user_id, course_id, datetime.now(UTC))
            await self.gateway.commit()
        except IntegrityError as e:
            # A concurrent request won the race past the existence check
            await self.gateway.rollback()
            if await self.gateway.find_enrollment(user_id, course_id) is None:
                raise
            logger.warning(f"Duplicate enrollment for user {user_id}, course {course_id} blocked by constraint")
            raise ConflictError(ALREADY_ENROLLED) from e

        logger.info(f"Created enrollment {enrollment.id} for user {user_id} in course {course_id}")
        return enrollment

    async def list_for_user(
        self,
        user_id: int,
        status: EnrollmentStatus | None = None,
    ) -> list[EnrollmentWithCourseRow]:
        """List a user's enrollments, newest first, with course titles."""
        if not await self.gateway.user_exists(user_id):
            raise ResourceNotFoundError("User", user_id, "User not found")

        return await self.gateway.list_user_enrollments(user_id, status.value if status else None)
