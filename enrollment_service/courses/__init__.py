"""Course hierarchy read models."""

from enrollment_service.courses.models import Course, CourseModule, CourseSection, CourseStatus


__all__ = ["Course", "CourseModule", "CourseSection", "CourseStatus"]
