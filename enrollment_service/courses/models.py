"""Read models for the course hierarchy owned by the course-authoring service.

This service never writes these tables; they are mapped so the completion
denominator can be queried and so tests can seed them.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from enrollment_service.database.base import Base


__all__ = ["Course", "CourseModule", "CourseSection", "CourseStatus"]


class CourseStatus(str, Enum):
    """Course lifecycle status."""

    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


class Course(Base):
    """A course authored by a teacher."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CourseStatus.DRAFT.value)
    teacher_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    modules: Mapped[list[CourseModule]] = relationship("CourseModule", back_populates="course")


class CourseModule(Base):
    """An ordered module inside a course."""

    __tablename__ = "course_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    course: Mapped[Course] = relationship("Course", back_populates="modules")
    sections: Mapped[list[CourseSection]] = relationship("CourseSection", back_populates="module")


class CourseSection(Base):
    """An ordered section inside a module; the unit a student completes."""

    __tablename__ = "course_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    module_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    module: Mapped[CourseModule] = relationship("CourseModule", back_populates="sections")
