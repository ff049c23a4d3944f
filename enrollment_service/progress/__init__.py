"""Progress module for tracking section completion."""

from enrollment_service.progress.models import Progress, ProgressStatus


__all__ = ["Progress", "ProgressStatus"]
