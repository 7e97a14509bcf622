"""Error taxonomy shared by the token engine, account rules, storage and service layers."""

from __future__ import annotations

from typing import Any


class WardenError(Exception):
    """Base class for every error the core raises on purpose."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(WardenError):
    """Input has the wrong shape (bad date format, empty required value)."""


class NotFound(WardenError):
    """Requested account does not exist."""


class InvalidUser(NotFound):
    """Password reset requested for an address that has no account."""


class DuplicateEmail(WardenError):
    """Another account already uses this email."""


class DuplicateUsername(WardenError):
    """Another account already uses this username."""


class InvalidCredentials(WardenError):
    """Password does not match the stored hash."""


class InvalidTransition(WardenError):
    """Role or status change not allowed from the account's current state."""

    def __init__(self, current: Any, attempted: Any, message: str | None = None) -> None:
        self.current = current
        self.attempted = attempted
        super().__init__(
            message or f"Cannot move account from {_label(current)} to {_label(attempted)}."
        )


class AllocationExhausted(WardenError):
    """No free username candidate within the configured suffix bound."""


class HashingError(WardenError):
    """Password hash could not be produced."""


class MalformedHash(WardenError):
    """Stored password hash is not a valid bcrypt hash."""


class TokenError(WardenError):
    """Base for every token parsing/validation failure."""


class Expired(TokenError):
    """Token is past its expiry."""


class InvalidSignature(TokenError):
    """Token signature does not verify against the domain secret."""


class UnexpectedAlgorithm(TokenError):
    """Token header names a non-HMAC algorithm (e.g. 'none', RS256)."""


class Malformed(TokenError):
    """Token cannot be decoded or is missing required claims."""


class StorageError(WardenError):
    """Opaque storage failure passed through from the database layer."""


class RecordNotFound(StorageError):
    """No row matched the lookup."""


class DuplicateKeyError(StorageError):
    """Unique constraint violated; field names the offending column."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Duplicate value for {field}.")


class DeliveryError(WardenError):
    """Outbound email could not be handed to the mail server."""


def _label(state: Any) -> str:
    return str(getattr(state, "value", state))
