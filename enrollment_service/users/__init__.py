from enrollment_service.users.models import User


__all__ = ["User"]
