"""
Application-wide exception hierarchy.

Services raise these types; ``create_app`` registers one error handler per
type so every blueprint returns the same JSON error shape and HTTP status.

Usage:
    from onboarding.core.exceptions import ForbiddenError, NotFoundError, ValidationError

    raise NotFoundError(resource="Task", resource_id=task_id)
    raise ValidationError("name is required", details={"name": "missing"})
    raise ForbiddenError("Task belongs to another organization")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist. Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Category", "Task").
        resource_id: The id that was looked up. Included in logs, not in the
                     HTTP response.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ValidationError(Exception):
    """Raised when input is missing or violates a business rule. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when the caller may not touch the resource. Maps to HTTP 403.

    Used for wrong-role and wrong-organization access alike.
    """

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class CapabilityUnavailableError(Exception):
    """Raised when a feature's schema is not present in this deployment. Maps to HTTP 503."""

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"{capability} are not available in this deployment")
