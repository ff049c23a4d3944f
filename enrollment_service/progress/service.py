"""Progress tracker: per-section progress and the course-completion transition.

Every update runs in one transaction that starts by locking the enrollment
row, so two concurrent "last section completed" reports for the same
enrollment cannot both miss the transition.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from enrollment_service.exceptions import ResourceNotFoundError
from enrollment_service.persistence import CompletionCounts, EnrollmentRow, PersistenceGateway, ProgressRow
from enrollment_service.progress.models import ProgressStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressUpdateResult:
    """Outcome of a progress report.

    ``course_completed`` is True only for the report that moved the
    enrollment into ``completed``.
    """

    enrollment_id: int
    status: ProgressStatus
    counts: CompletionCounts | None = None
    course_completed: bool = False


@dataclass(frozen=True, slots=True)
class ProgressSummary:
    """Enrollment state with fresh completion counts and section rows."""

    enrollment: EnrollmentRow
    counts: CompletionCounts
    sections: list[ProgressRow]


class ProgressTracker:
    """Records section progress and completes enrollments."""

    def __init__(self, gateway: PersistenceGateway, *, validate_sections: bool = False) -> None:
        self.gateway = gateway
        self.validate_sections = validate_sections

    async def _get_enrollment_or_404(self, enrollment_id: int, *, for_update: bool = False) -> EnrollmentRow:
        enrollment = await self.gateway.get_enrollment(enrollment_id, for_update=for_update)
        if enrollment is None:
            raise ResourceNotFoundError("Enrollment", enrollment_id, "Enrollment not found")
        return enrollment

    async def update_progress(
        self,
        enrollment_id: int,
        module_id: int,
        section_id: int,
        status: ProgressStatus,
    ) -> ProgressUpdateResult:
        """Upsert a section's progress and, on ``completed``, evaluate course completion."""
        enrollment = await self._get_enrollment_or_404(enrollment_id, for_update=True)

        if self.validate_sections and not await self.gateway.section_in_course(
            enrollment.course_id, module_id, section_id
        ):
            raise ResourceNotFoundError("Section", section_id, "Section not found in course")

        now = datetime.now(UTC)
        await self.gateway.upsert_progress(enrollment_id, module_id, section_id, status.value, now)
        logger.info(f"Progress for enrollment {enrollment_id}, section {section_id} set to {status.value}")

        counts = None
        course_completed = False
        if status == ProgressStatus.COMPLETED:
            counts, course_completed = await self._evaluate_completion(enrollment, now)

        await self.gateway.commit()

        return ProgressUpdateResult(
            enrollment_id=enrollment_id,
            status=status,
            counts=counts,
            course_completed=course_completed,
        )

    async def _evaluate_completion(
        self,
        enrollment: EnrollmentRow,
        now: datetime,
    ) -> tuple[CompletionCounts, bool]:
        counts = await self.gateway.completion_counts(enrollment)
        if not counts.is_complete:
            return counts, False

        # No-op for enrollments that are already completed or cancelled
        transitioned = await self.gateway.mark_enrollment_completed(enrollment.id, now)
        if transitioned:
            logger.info(
                f"Enrollment {enrollment.id} completed course {enrollment.course_id} "
                f"({counts.completed}/{counts.required} sections)"
            )
        return counts, transitioned

    async def get_summary(self, enrollment_id: int) -> ProgressSummary:
        """Current enrollment state, completion counts and recorded sections."""
        enrollment = await self._get_enrollment_or_404(enrollment_id)
        counts = await self.gateway.completion_counts(enrollment)
        sections = await self.gateway.list_progress(enrollment_id)
        return ProgressSummary(enrollment=enrollment, counts=counts, sections=sections)
