"""Pydantic request/response schemas."""

from warden.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordForm,
    TokenPairResponse,
)
from warden.schemas.health import HealthResponse
from warden.schemas.user import (
    AccountEmailRequest,
    MessageResponse,
    ProfilePictureRequest,
    UpdateProfileRequest,
    UserResponse,
    UsersListResponse,
)

__all__ = [
    "AccountEmailRequest",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "ProfilePictureRequest",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordForm",
    "TokenPairResponse",
    "UpdateProfileRequest",
    "UserResponse",
    "UsersListResponse",
]
