"""Error kinds shared by the repositories, services and routes.

Services raise ``DomainError`` subclasses tagged with an ``ErrorKind``.
Routes convert them with ``to_http_exception`` so clients receive
``{"code": ..., "message": ...}`` and never have to parse message text.
"""

from enum import Enum

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    TRANSIENT_FETCH = 'transient_fetch'
    ALREADY_BONDED = 'already_bonded'
    REQUEST_ALREADY_PENDING = 'request_already_pending'
    PREVIOUSLY_DENIED = 'previously_denied'
    INVALID_TRANSITION = 'invalid_transition'
    STUDENT_NOT_FOUND = 'student_not_found'
    REQUEST_NOT_FOUND = 'request_not_found'
    NOT_REQUEST_RECIPIENT = 'not_request_recipient'
    ACCESS_DENIED = 'access_denied'
    INVALID_SLOT = 'invalid_slot'
    PAST_DATE = 'past_date'
    INVALID_MONTH = 'invalid_month'
    SLOT_OVERLAP = 'slot_overlap'
    PARTIAL_CONSISTENCY = 'partial_consistency'


ERROR_STATUS_CODES = {
    ErrorKind.TRANSIENT_FETCH: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.ALREADY_BONDED: status.HTTP_409_CONFLICT,
    ErrorKind.REQUEST_ALREADY_PENDING: status.HTTP_409_CONFLICT,
    ErrorKind.PREVIOUSLY_DENIED: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.STUDENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.REQUEST_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_REQUEST_RECIPIENT: status.HTTP_403_FORBIDDEN,
    ErrorKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_SLOT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PAST_DATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_MONTH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.SLOT_OVERLAP: status.HTTP_409_CONFLICT,
    ErrorKind.PARTIAL_CONSISTENCY: status.HTTP_503_SERVICE_UNAVAILABLE,
}

DEFAULT_MESSAGES = {
    ErrorKind.TRANSIENT_FETCH: 'Database unavailable. Please try again.',
    ErrorKind.ALREADY_BONDED: 'You are already bonded with this student.',
    ErrorKind.REQUEST_ALREADY_PENDING: 'A request is already pending for this student.',
    ErrorKind.PREVIOUSLY_DENIED: 'Your previous request was denied.',
    ErrorKind.INVALID_TRANSITION: 'This request has already been answered.',
    ErrorKind.STUDENT_NOT_FOUND: 'No student found with that exact name or email.',
    ErrorKind.REQUEST_NOT_FOUND: 'Bond request not found.',
    ErrorKind.NOT_REQUEST_RECIPIENT: 'Only the invited student can answer this request.',
    ErrorKind.ACCESS_DENIED: 'You do not have access to this student.',
    ErrorKind.INVALID_SLOT: 'End time must be after start time.',
    ErrorKind.PAST_DATE: 'Availability cannot be added to past dates.',
    ErrorKind.INVALID_MONTH: 'Month must be a valid calendar month (YYYY-MM).',
    ErrorKind.SLOT_OVERLAP: 'Time slots cannot overlap.',
    ErrorKind.PARTIAL_CONSISTENCY: 'Approval could not be completed and was rolled back. Please try again.',
}


class DomainError(Exception):
    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.kind]


class TransientFetchError(DomainError):
    """A data-store call failed. Nothing is retried; the caller may refetch."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.TRANSIENT_FETCH, message)


class PreconditionViolation(DomainError):
    """A business rule failed before any write was issued."""


class PartialConsistencyError(DomainError):
    """The second write of a two-step operation failed."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorKind.PARTIAL_CONSISTENCY, message)


def to_http_exception(exc: DomainError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={'code': exc.kind.value, 'message': exc.message},
    )
