"""Persistence gateway for the enrollment workflow.

Runs parameterized statements against the shared relational store and
decodes results into typed rows. Owns no business rules: existence,
uniqueness and completion decisions are made by the services.
"""

import logging
from datetime import datetime

from sqlalchemy import distinct, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_service.courses.models import Course, CourseModule, CourseSection, CourseStatus
from enrollment_service.enrollments.models import Enrollment, EnrollmentStatus
from enrollment_service.progress.models import Progress, ProgressStatus
from enrollment_service.users.models import User

from .rows import CompletionCounts, EnrollmentRow, EnrollmentWithCourseRow, ProgressRow


logger = logging.getLogger(__name__)

enrollments = Enrollment.__table__
progress = Progress.__table__

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PersistenceGateway:
    """Typed access to users, courses, enrollments and progress."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # Users / courses (read models)

    async def user_exists(self, user_id: int) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.first() is not None

    async def is_course_published(self, course_id: int) -> bool:
        result = await self.session.execute(
            select(Course.id).where(Course.id == course_id, Course.status == CourseStatus.PUBLISHED.value)
        )
        return result.first() is not None

    async def section_in_course(self, course_id: int, module_id: int, section_id: int) -> bool:
        result = await self.session.execute(
            select(CourseSection.id)
            .join(CourseModule, CourseSection.module_id == CourseModule.id)
            .where(
                CourseModule.course_id == course_id,
                CourseModule.id == module_id,
                CourseSection.id == section_id,
            )
        )
        return result.first() is not None

    async def count_course_sections(self, course_id: int) -> int:
        """Count the sections reachable from a course's modules (never cached)."""
        result = await self.session.execute(
            select(func.count(distinct(CourseSection.id)))
            .select_from(CourseSection)
            .join(CourseModule, CourseSection.module_id == CourseModule.id)
            .where(CourseModule.course_id == course_id)
        )
        return result.scalar_one()

    # Enrollments

    async def get_enrollment(self, enrollment_id: int, *, for_update: bool = False) -> EnrollmentRow | None:
        """Fetch one enrollment, optionally locking its row until commit."""
        query = select(enrollments).where(enrollments.c.id == enrollment_id)
        if for_update:
            # Ignored by SQLite, which serializes writers anyway
            query = query.with_for_update()
        row = (await self.session.execute(query)).first()
        return EnrollmentRow.from_row(row) if row else None

    async def find_enrollment(self, user_id: int, course_id: int) -> EnrollmentRow | None:
        row = (
            await self.session.execute(
                select(enrollments).where(enrollments.c.user_id == user_id, enrollments.c.course_id == course_id)
            )
        ).first()
        return EnrollmentRow.from_row(row) if row else None

    async def insert_enrollment(self, user_id: int, course_id: int, enrolled_at: datetime) -> EnrollmentRow:
        """Insert an active enrollment.

        Raises ``IntegrityError`` when the (user_id, course_id) pair already exists.
        """
        result = await self.session.execute(
            insert(enrollments).values(
                user_id=user_id,
                course_id=course_id,
                status=EnrollmentStatus.ACTIVE.value,
                enrolled_at=enrolled_at,
            )
        )
        return EnrollmentRow(
            id=result.inserted_primary_key[0],
            user_id=user_id,
            course_id=course_id,
            status=EnrollmentStatus.ACTIVE.value,
            enrolled_at=enrolled_at,
        )

    async def list_user_enrollments(
        self,
        user_id: int,
        status: str | None = None,
    ) -> list[EnrollmentWithCourseRow]:
        query = (
            select(enrollments, Course.title.label("course_title"))
            .join(Course, enrollments.c.course_id == Course.id)
            .where(enrollments.c.user_id == user_id)
        )
        if status:
            query = query.where(enrollments.c.status == status)
        query = query.order_by(enrollments.c.enrolled_at.desc(), enrollments.c.id.desc())

        result = await self.session.execute(query)
        return [EnrollmentWithCourseRow.from_row(row) for row in result]

    async def mark_enrollment_completed(self, enrollment_id: int, completed_at: datetime) -> bool:
        """Move an active enrollment to completed.

        Guarded on the current status so ``completed_at`` is stamped once.
        Returns whether a row changed.
        """
        result = await self.session.execute(
            update(enrollments)
            .where(
                enrollments.c.id == enrollment_id,
                enrollments.c.status == EnrollmentStatus.ACTIVE.value,
            )
            .values(status=EnrollmentStatus.COMPLETED.value, completed_at=completed_at)
        )
        return result.rowcount > 0

    # Progress

    async def upsert_progress(
        self,
        enrollment_id: int,
        module_id: int,
        section_id: int,
        status: str,
        updated_at: datetime,
    ) -> None:
        """Insert or overwrite the progress row for one (enrollment, module, section)."""
        values = {
            "enrollment_id": enrollment_id,
            "module_id": module_id,
            "section_id": section_id,
            "status": status,
            "updated_at": updated_at,
        }

        dialect_insert = _UPSERT_INSERTS.get(self.dialect_name)
        if dialect_insert is not None:
            stmt = dialect_insert(progress).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[progress.c.enrollment_id, progress.c.module_id, progress.c.section_id],
                set_={"status": stmt.excluded.status, "updated_at": stmt.excluded.updated_at},
            )
            await self.session.execute(stmt)
            return

        # Generic fallback; the enrollment row lock keeps this race-free per enrollment
        logger.debug("No upsert support for dialect %s, using select-then-write", self.dialect_name)
        key = (
            progress.c.enrollment_id == enrollment_id,
            progress.c.module_id == module_id,
            progress.c.section_id == section_id,
        )
        existing = (await self.session.execute(select(progress.c.id).where(*key))).first()
        if existing:
            await self.session.execute(update(progress).where(*key).values(status=status, updated_at=updated_at))
        else:
            await self.session.execute(insert(progress).values(**values))

    async def count_completed_progress(self, enrollment_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(progress)
            .where(
                progress.c.enrollment_id == enrollment_id,
                progress.c.status == ProgressStatus.COMPLETED.value,
            )
        )
        return result.scalar_one()

    async def completion_counts(self, enrollment: EnrollmentRow) -> CompletionCounts:
        required = await self.count_course_sections(enrollment.course_id)
        completed = await self.count_completed_progress(enrollment.id)
        return CompletionCounts(required=required, completed=completed)

    async def list_progress(self, enrollment_id: int) -> list[ProgressRow]:
        result = await self.session.execute(
            select(progress)
            .where(progress.c.enrollment_id == enrollment_id)
            .order_by(progress.c.module_id, progress.c.section_id)
        )
        return [ProgressRow.from_row(row) for row in result]
