"""
Centralized error handling for swap marketplace failures.

Services raise the typed errors below; routes stay thin and the app-level
exception handler turns them into JSON responses using ERROR_RULES.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_INTERNAL_ERROR = 500


class SwapError(Exception):
    """Base class for all application-level errors."""

    kind = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SwapError):
    """Malformed input: missing fields, start >= end, bad status value."""

    kind = "validation_error"
    default_message = "Invalid input"


class InvalidSlotError(SwapError):
    """Slot absent, not owned by the caller, or in the wrong status."""

    kind = "invalid_slot"
    default_message = "Invalid slots"


class NotFoundError(SwapError):
    """
    Row absent, already resolved, or the caller is not a party to it.
    These cases are deliberately indistinguishable to the caller.
    """

    kind = "not_found"
    default_message = "Not found"


class ConflictError(SwapError):
    """Lock wait or serialization failure surfaced by the store during a race."""

    kind = "conflict"
    default_message = "Concurrent update, retry the operation"


class AuthError(SwapError):
    """Missing or invalid identity."""

    kind = "auth_error"
    default_message = "Not authenticated"


# ---------------------------------------------------------------------------
# Error rules: (error type, status_code). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

ERROR_RULES: list[tuple[type[SwapError], int]] = [
    (ValidationError, STATUS_BAD_REQUEST),
    (InvalidSlotError, STATUS_BAD_REQUEST),
    (NotFoundError, STATUS_NOT_FOUND),
    (ConflictError, STATUS_CONFLICT),
    (AuthError, STATUS_UNAUTHORIZED),
]


def status_for(exc: SwapError) -> int:
    for error_type, status_code in ERROR_RULES:
        if isinstance(exc, error_type):
            return status_code
    return STATUS_INTERNAL_ERROR


def swap_error_to_http(exc: SwapError) -> HTTPException:
    """
    Map a service error into an HTTPException (for callers that prefer raising).
    AuthError carries the WWW-Authenticate header expected by bearer clients.
    """
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return HTTPException(status_code=status_for(exc), detail=exc.message, headers=headers)
