"""Application error taxonomy.

Every error raised by the query engine or the service layer derives from
``AppError`` and carries the HTTP status, a human-readable message, and
optionally per-field details. ``register_error_handlers`` renders them all
through the same envelope.
"""

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: list[dict] | None = None,
        field: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        self.field = field
        super().__init__(self.message)

    def extra(self) -> dict:
        """Additional keys merged into the error body."""
        return {}


class InvalidQuery(AppError):
    """One or more query-string parameters failed validation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_QUERY"
    default_message = "Invalid query parameters."


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation failed."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found."


class ConflictDependency(AppError):
    """Delete refused because other rows still reference the target."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "CONFLICT_DEPENDENCY"

    def __init__(self, message: str, *, dependents: int, dependent_type: str) -> None:
        super().__init__(message)
        self.dependents = dependents
        self.dependent_type = dependent_type

    def extra(self) -> dict:
        return {"dependents": self.dependents, "dependentType": self.dependent_type}


class DuplicateKey(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "DUPLICATE_KEY"
    default_message = "A record with this value already exists."


class StoreUnavailable(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORE_UNAVAILABLE"
    default_message = "The database is unavailable. Please try again later."


class HierarchyCycleError(AppError):
    """The stored manager chain loops back on itself."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "HIERARCHY_CYCLE"
    default_message = "Employee hierarchy contains a reporting cycle."

    def __init__(self, employee_ids: list[int]) -> None:
        super().__init__(
            f"Employee hierarchy contains a reporting cycle involving "
            f"employees {sorted(employee_ids)}."
        )
        self.employee_ids = sorted(employee_ids)

    def extra(self) -> dict:
        return {"employeeIds": self.employee_ids}
