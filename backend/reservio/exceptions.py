"""Domain errors raised by the lifecycle and capacity services.

Each error carries a stable ``code`` so clients can branch on the kind of
failure without parsing the message, and the HTTP status the API layer
answers with. None of them are retried by the service.
"""
from fastapi import status


class ReservioError(Exception):
    """Base class for business-rule violations."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ReservioError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(ReservioError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(ReservioError):
    code = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ReservioError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(ReservioError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class StoreUnavailableError(ReservioError):
    """The store could not serve the action in time; the whole action may be retried."""

    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
