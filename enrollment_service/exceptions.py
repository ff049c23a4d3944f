class DomainError(Exception):
    """Base exception class for all domain-specific exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ResourceNotFoundError(DomainError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: int | str, message: str | None = None) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message or f"{resource_type} not found")


class ConflictError(DomainError):
    """Exception raised when a write would violate a uniqueness rule."""
