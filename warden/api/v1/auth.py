"""Registration, login and refresh routes plus the auth gate dependencies."""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from warden.api.v1.errors import to_http_exception
from warden.core.config import get_settings
from warden.core.database import get_db
from warden.core.errors import TokenError, WardenError
from warden.core.tokens import AuthenticatedPrincipal, TokenDomain, TokenEngine
from warden.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
)
from warden.schemas.user import UserResponse
from warden.services.accounts import AccountService
from warden.services.mailer import PasswordResetMailer
from warden.services.repository import UserRepository

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_engine() -> TokenEngine:
    """Process-wide token engine built once from settings (secrets are read-only after start)."""
    return TokenEngine.from_settings(get_settings())


@lru_cache
def get_mailer() -> PasswordResetMailer:
    return PasswordResetMailer(get_settings())


def get_account_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenEngine, Depends(get_token_engine)],
    mailer: Annotated[PasswordResetMailer, Depends(get_mailer)],
) -> AccountService:
    return AccountService.from_settings(get_settings(), UserRepository(db), tokens, mailer)


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenEngine, Depends(get_token_engine)],
) -> AuthenticatedPrincipal:
    """
    Dependency: require a valid Bearer access token and return the caller.

    400 if the header is missing or not Bearer, 401 if the token is invalid or expired,
    500 if parsing fails for any other reason.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing or malformed Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        claims = tokens.parse_and_validate(credentials.credentials, TokenDomain.ACCESS)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except Exception as e:
        logger.exception("Unexpected failure while parsing access token")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not validate token",
        ) from e
    return AuthenticatedPrincipal.from_claims(claims)


def require_admin(
    principal: Annotated[AuthenticatedPrincipal, Depends(get_current_principal)],
) -> AuthenticatedPrincipal:
    """Dependency: require an authenticated admin or superadmin. Raises 403 otherwise."""
    if not principal.is_admin:
        logger.warning(
            "Admin route refused",
            extra={"user_id": str(principal.user_id), "role": str(principal.role)},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal


@router.post("/register", response_model=UserResponse)
def register(
    body: RegisterRequest,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> UserResponse:
    """Create an account; the username is derived from first and last name."""
    try:
        user = service.register(
            body.email, body.password, body.first_name, body.last_name, body.user_role
        )
    except WardenError as e:
        raise to_http_exception(e) from e
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenPairResponse)
def login(
    body: LoginRequest,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> TokenPairResponse:
    """
    Authenticate with email and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    try:
        pair = service.login(body.email, body.password)
    except WardenError as e:
        raise to_http_exception(e) from e
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    body: RefreshRequest,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> TokenPairResponse:
    """Exchange a refresh token for a new access token. The refresh token is returned as is."""
    try:
        access_token, refresh_token = service.refresh(body.refresh_token)
    except WardenError as e:
        raise to_http_exception(e) from e
    return TokenPairResponse(access_token=access_token, refresh_token=refresh_token)
