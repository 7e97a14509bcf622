"""
JWT issuance and validation for the three token domains: access, refresh and password reset.

Each domain signs with its own secret, so a token minted in one domain never validates in
another. Only HMAC algorithms are accepted; a header naming anything else ("none", RS256, ...)
is rejected before the signature is looked at.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import UUID

import jwt

from warden.core.config import HMAC_ALGORITHMS
from warden.core.errors import (
    Expired,
    InvalidSignature,
    Malformed,
    UnexpectedAlgorithm,
)
from warden.models.enums import Role

if TYPE_CHECKING:
    from warden.core.config import Settings

logger = logging.getLogger(__name__)

RESET_PURPOSE = "password_reset"

# Claims every token must carry; exp is checked against the engine clock, not by PyJWT.
_REQUIRED_CLAIMS = ["exp", "iat", "sub"]


class TokenDomain(StrEnum):
    """Signing-secret namespace a token belongs to."""

    ACCESS = "access"
    REFRESH = "refresh"
    RESET = "reset"


@dataclass(frozen=True)
class TokenSecrets:
    """Symmetric signing secrets, one per domain. Read-only for the process lifetime."""

    access: str
    refresh: str
    reset: str

    def __post_init__(self) -> None:
        values = (self.access, self.refresh, self.reset)
        if any(not v for v in values):
            raise ValueError("Token secrets must be non-empty")
        if len(set(values)) != len(values):
            raise ValueError("Token secrets must differ between domains")

    def for_domain(self, domain: TokenDomain) -> str:
        return getattr(self, domain.value)

    def __repr__(self) -> str:
        return "TokenSecrets(access=***, refresh=***, reset=***)"


@dataclass(frozen=True)
class TokenLifetimes:
    access: timedelta = timedelta(hours=24)
    refresh: timedelta = timedelta(days=90)
    reset: timedelta = timedelta(minutes=30)


@dataclass(frozen=True)
class UserClaims:
    """Decoded identity claims of an access or refresh token."""

    user_id: UUID
    username: str
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime
    subject: str


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Caller identity established by the auth gate and passed explicitly to service calls."""

    user_id: UUID
    username: str
    email: str
    role: Role

    @classmethod
    def from_claims(cls, claims: UserClaims) -> AuthenticatedPrincipal:
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            email=claims.email,
            role=claims.role,
        )

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenEngine:
    """Issues and validates signed tokens. Holds no mutable state."""

    def __init__(
        self,
        secrets: TokenSecrets,
        lifetimes: TokenLifetimes | None = None,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Signing algorithm must be one of {', '.join(HMAC_ALGORITHMS)}")
        self._secrets = secrets
        self._lifetimes = lifetimes or TokenLifetimes()
        self._algorithm = algorithm
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenEngine:
        secrets = TokenSecrets(
            access=settings.JWT_ACCESS_SECRET.get_secret_value(),
            refresh=settings.JWT_REFRESH_SECRET.get_secret_value(),
            reset=settings.JWT_RESET_SECRET.get_secret_value(),
        )
        lifetimes = TokenLifetimes(
            access=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
            refresh=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            reset=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        )
        return cls(secrets, lifetimes, algorithm=settings.JWT_ALGORITHM)

    def _now(self) -> datetime:
        # JWT numeric dates have one-second resolution.
        return self._clock().astimezone(UTC).replace(microsecond=0)

    def _sign(self, payload: dict[str, Any], domain: TokenDomain) -> str:
        return jwt.encode(payload, self._secrets.for_domain(domain), algorithm=self._algorithm)

    def _user_token(
        self,
        domain: TokenDomain,
        lifetime: timedelta,
        user_id: UUID,
        username: str,
        email: str,
        role: Role | str,
    ) -> tuple[str, datetime]:
        now = self._now()
        expires_at = now + lifetime
        payload: dict[str, Any] = {
            "user_id": str(user_id),
            "username": username,
            "email": email,
            "role": str(role),
            "iat": now,
            "exp": expires_at,
            "sub": str(user_id),
        }
        return self._sign(payload, domain), expires_at

    def issue_access_token(
        self, user_id: UUID, username: str, email: str, role: Role | str
    ) -> str:
        """Access token valid for the access lifetime (24h by default), signed with the access secret."""
        token, _ = self._user_token(
            TokenDomain.ACCESS, self._lifetimes.access, user_id, username, email, role
        )
        return token

    def issue_refresh_token(
        self, user_id: UUID, username: str, email: str, role: Role | str
    ) -> tuple[str, datetime]:
        """Refresh token and its expiry (90 days by default), signed with the refresh secret."""
        return self._user_token(
            TokenDomain.REFRESH, self._lifetimes.refresh, user_id, username, email, role
        )

    def issue_token_pair(
        self, user_id: UUID, username: str, email: str, role: Role | str
    ) -> TokenPair:
        """Both tokens or neither: any signing failure propagates before anything is returned."""
        access_token = self.issue_access_token(user_id, username, email, role)
        refresh_token, refresh_expires_at = self.issue_refresh_token(
            user_id, username, email, role
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires_at,
        )

    def _decode(self, token: str, domain: TokenDomain) -> dict[str, Any]:
        """Check algorithm, signature, required claims and expiry; return the raw payload."""
        if not token or not isinstance(token, str):
            raise Malformed("Token is empty.")
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise Malformed(f"Token could not be decoded: {e}") from e
        alg = header.get("alg")
        if alg not in HMAC_ALGORITHMS:
            raise UnexpectedAlgorithm(f"Unexpected signing method: {alg!r}")
        try:
            payload = jwt.decode(
                token,
                self._secrets.for_domain(domain),
                algorithms=list(HMAC_ALGORITHMS),
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidSignature("Token signature is invalid.") from e
        except jwt.InvalidAlgorithmError as e:
            raise UnexpectedAlgorithm(f"Unexpected signing method: {alg!r}") from e
        except jwt.PyJWTError as e:
            raise Malformed(f"Token could not be decoded: {e}") from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise Malformed("Token expiry is not a numeric date.")
        # A token is already expired at its exp instant.
        if exp <= self._now().timestamp():
            raise Expired("Token has expired.")
        return payload

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> UserClaims:
        try:
            user_id = UUID(str(payload.get("user_id", "")))
            role = Role(payload.get("role", ""))
            issued_at = datetime.fromtimestamp(payload["iat"], UTC)
            expires_at = datetime.fromtimestamp(payload["exp"], UTC)
        except (ValueError, TypeError, KeyError, OverflowError) as e:
            raise Malformed("Token claims are invalid.") from e
        return UserClaims(
            user_id=user_id,
            username=str(payload.get("username") or ""),
            email=str(payload.get("email") or ""),
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
            subject=str(payload.get("sub") or ""),
        )

    def parse_and_validate(self, token: str, domain: TokenDomain) -> UserClaims:
        """
        Validate an access or refresh token against its domain secret and return its claims.

        Raises Malformed, UnexpectedAlgorithm, InvalidSignature or Expired.
        """
        if domain not in (TokenDomain.ACCESS, TokenDomain.REFRESH):
            raise ValueError("Reset tokens carry no user claims; use verify_reset_token")
        return self._claims_from_payload(self._decode(token, domain))

    def refresh_access_token(self, refresh_token: str) -> str:
        """
        Mint a new access token from a valid refresh token.

        The refresh token itself is neither rotated nor revoked.
        """
        claims = self.parse_and_validate(refresh_token, TokenDomain.REFRESH)
        if (
            claims.user_id.int == 0
            or not claims.username
            or not claims.email
            or not claims.role
        ):
            raise Malformed("Invalid token claims.")
        logger.debug("Access token refreshed", extra={"user_id": str(claims.user_id)})
        return self.issue_access_token(
            claims.user_id, claims.username, claims.email, claims.role
        )

    def issue_reset_token(self, user_id: UUID) -> str:
        """Short-lived password reset token carrying only the user id."""
        now = self._now()
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "purpose": RESET_PURPOSE,
            "iat": now,
            "exp": now + self._lifetimes.reset,
        }
        return self._sign(payload, TokenDomain.RESET)

    def verify_reset_token(self, token: str) -> UUID:
        """
        Return the user id of a valid reset token.

        Safe to call repeatedly; single use is the caller's concern.
        """
        payload = self._decode(token, TokenDomain.RESET)
        if payload.get("purpose") != RESET_PURPOSE:
            raise Malformed("Token is not a password reset token.")
        try:
            return UUID(str(payload["sub"]))
        except (ValueError, KeyError) as e:
            raise Malformed("Reset token subject is invalid.") from e
