"""Enrollment module for course registration."""

from enrollment_service.enrollments.models import Enrollment, EnrollmentStatus


__all__ = ["Enrollment", "EnrollmentStatus"]
