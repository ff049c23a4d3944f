from typing import Annotated

from fastapi import Depends, Path

from enrollment_service.config import get_settings
from enrollment_service.persistence.dependencies import Gateway
from enrollment_service.progress.service import ProgressTracker


def get_progress_tracker(gateway: Gateway) -> ProgressTracker:
    """Get progress tracker instance."""
    return ProgressTracker(gateway, validate_sections=get_settings().PROGRESS_VALIDATE_SECTIONS)


ProgressTrackerDep = Annotated[ProgressTracker, Depends(get_progress_tracker)]

EnrollmentIdParam = Annotated[int, Path(gt=0, description="ID of the enrollment")]
