"""
Domain errors and their mapping to HTTP responses.
Services raise these; routes stay thin and convert with domain_error_to_http.
"""
from __future__ import annotations

from fastapi import HTTPException

# HTTP status codes for known error categories
STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_BAD_GATEWAY = 502  # places provider down, bad status, malformed body
STATUS_SERVICE_UNAVAILABLE = 503  # database unavailable
STATUS_INTERNAL_ERROR = 500


class DinnerGroupsError(Exception):
    """Base for every error the core raises on purpose."""


class InvalidArgument(DinnerGroupsError, ValueError):
    """A required identifier is missing or refers to nothing."""

    def __init__(self, message: str, *, not_found: bool = False) -> None:
        super().__init__(message)
        self.not_found = not_found


class UpstreamFailure(DinnerGroupsError):
    """Places lookup failed: network, timeout, parse error or non-OK status."""


class ConstraintViolation(DinnerGroupsError):
    """A uniqueness race was lost even after one internal retry."""


class StorageFailure(DinnerGroupsError):
    """Database failure that is not a benign uniqueness race."""


# ---------------------------------------------------------------------------
# Error rules: (exception type, status_code). First match wins.
# ---------------------------------------------------------------------------

DOMAIN_ERROR_RULES: list[tuple[type[DinnerGroupsError], int]] = [
    (InvalidArgument, STATUS_BAD_REQUEST),
    (UpstreamFailure, STATUS_BAD_GATEWAY),
    (ConstraintViolation, STATUS_CONFLICT),
    (StorageFailure, STATUS_SERVICE_UNAVAILABLE),
]


def domain_error_to_http(exc: Exception) -> HTTPException:
    """
    Map a service exception into an HTTPException.
    Uses DOMAIN_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    if isinstance(exc, InvalidArgument) and exc.not_found:
        return HTTPException(status_code=STATUS_NOT_FOUND, detail=str(exc))
    for exc_type, status_code in DOMAIN_ERROR_RULES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
