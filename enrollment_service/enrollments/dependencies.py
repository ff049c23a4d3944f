from typing import Annotated

from fastapi import Depends, Path

from enrollment_service.enrollments.service import EnrollmentManager
from enrollment_service.persistence.dependencies import Gateway


def get_enrollment_manager(gateway: Gateway) -> EnrollmentManager:
    """Get enrollment manager instance."""
    return EnrollmentManager(gateway)


EnrollmentManagerDep = Annotated[EnrollmentManager, Depends(get_enrollment_manager)]

UserIdParam = Annotated[int, Path(gt=0, description="ID of the user")]
