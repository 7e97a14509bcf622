"""Translate core errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from warden.core.errors import (
    AllocationExhausted,
    DeliveryError,
    DuplicateEmail,
    DuplicateUsername,
    HashingError,
    InvalidCredentials,
    InvalidTransition,
    MalformedHash,
    NotFound,
    StorageError,
    TokenError,
    ValidationError,
    WardenError,
)

logger = logging.getLogger(__name__)

# First match wins; subclasses must come before their bases.
_STATUS_BY_ERROR: tuple[tuple[type[WardenError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (DuplicateEmail, status.HTTP_400_BAD_REQUEST),
    (DuplicateUsername, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (TokenError, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (AllocationExhausted, status.HTTP_409_CONFLICT),
    (DeliveryError, status.HTTP_502_BAD_GATEWAY),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (HashingError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (MalformedHash, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(error: WardenError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(error: WardenError) -> HTTPException:
    """HTTPException for a core error. Server-side failures are logged and their detail hidden."""
    code = status_for(error)
    if code >= 500:
        logger.error(
            "Request failed",
            extra={"error_type": type(error).__name__, "reason": error.message[:500]},
        )
        detail = "Internal error" if code == 500 else error.message
        return HTTPException(status_code=code, detail=detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, TokenError) else None
    return HTTPException(status_code=code, detail=error.message, headers=headers)
