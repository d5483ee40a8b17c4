"""Custom API exceptions"""

from typing import Any

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception. `payload` is merged into the error envelope."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.payload = payload or {}


class BadRequestError(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(APIException):
    def __init__(self, detail: str = "Unauthorised"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(APIException):
    """Resource not found (also used for resources owned by another organization)."""

    def __init__(self, resource: str, resource_id: int | str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id {resource_id} not found",
        )


class ConflictError(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PreconditionFailedError(APIException):
    """The automation may not run now. Carries the preflight result."""

    def __init__(self, reason: str, preflight: dict[str, Any] | None = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=reason,
            payload={"preflight": preflight} if preflight is not None else None,
        )


# Runner errors (not HTTP-related)
class RunnerError(Exception):
    """Base exception for automation runners."""


class UnknownAutomationTypeError(RunnerError):
    def __init__(self, automation_type: str):
        self.automation_type = automation_type
        super().__init__(f"No runner registered for automation type '{automation_type}'")


class ItemProcessingError(RunnerError):
    """
    Failure of a single unit of work inside a run.

    Non-retryable errors are deterministic (e.g. insufficient balance) and are
    recorded immediately instead of being attempted again.
    """

    def __init__(self, message: str, retryable: bool = False):
        self.retryable = retryable
        super().__init__(message)


class ItemSkipped(RunnerError):
    """The unit was deliberately not processed (duplicate, already billed today)."""


class EmailDeliveryError(Exception):
    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Email to {recipient} failed: {reason}")
