"""Domain error taxonomy.

Services raise these; ``app.main`` renders them once, so nothing from the
storage layer leaks past a service boundary.
"""
from typing import Any
from uuid import uuid4


class DomainError(Exception):
    status_code: int = 500
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, **detail: Any) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, **self.detail}


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"


class ConflictError(DomainError):
    """Expected business outcome: a (date, slot, therapist) triple is taken."""

    status_code = 409
    default_message = "Selected therapist/time slot already booked for one or more session dates."

    def __init__(
        self,
        message: str | None = None,
        conflicts: list[dict[str, Any]] | None = None,
        **detail: Any,
    ) -> None:
        self.conflicts = list(conflicts or [])
        super().__init__(message, conflicts=self.conflicts, **detail)


class HolidayConflictError(ConflictError):
    # The set-holiday endpoint reports conflicts as a bad request
    status_code = 400
    default_message = "Cannot set holiday: therapist already has session(s) booked."


class SlotIntegrityError(ConflictError):
    """Storage uniqueness constraint fired; a concurrent request won the slot."""

    default_message = "Selected time slot was booked by a concurrent request."


class DuplicateRecordError(ConflictError):
    """A uniqueness constraint other than the session slot index fired."""

    default_message = "A conflicting record already exists."


class TransactionAbortError(DomainError):
    status_code = 500
    default_message = "The operation could not be completed and was rolled back."

    def __init__(self, operation: str, correlation_id: str | None = None) -> None:
        self.operation = operation
        self.correlation_id = correlation_id or new_correlation_id()
        super().__init__(
            f"Failed to {operation}.",
            correlationId=self.correlation_id,
        )


def new_correlation_id() -> str:
    return uuid4().hex
