"""Authenticated profile routes: update profile, profile picture, request password reset."""

from typing import Annotated

from fastapi import APIRouter, Depends

from warden.api.v1.auth import get_account_service, get_current_principal
from warden.api.v1.errors import to_http_exception
from warden.core.errors import WardenError
from warden.core.tokens import AuthenticatedPrincipal
from warden.schemas.user import (
    AccountEmailRequest,
    MessageResponse,
    ProfilePictureRequest,
    UpdateProfileRequest,
    UserResponse,
)
from warden.services.accounts import AccountService

router = APIRouter()


@router.put("/update", response_model=UserResponse)
def update_profile(
    body: UpdateProfileRequest,
    principal: Annotated[AuthenticatedPrincipal, Depends(get_current_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> UserResponse:
    """Update the caller's profile. Only non-empty fields are changed; date_of_birth is DD-MM-YYYY."""
    try:
        user = service.update_profile(
            principal,
            email=body.email,
            first_name=body.first_name,
            last_name=body.last_name,
            phone_number=body.phone_number,
            gender=body.gender,
            date_of_birth=body.date_of_birth,
        )
    except WardenError as e:
        raise to_http_exception(e) from e
    return UserResponse.model_validate(user)


@router.put("/update-profile-picture", response_model=UserResponse)
def update_profile_picture(
    body: ProfilePictureRequest,
    principal: Annotated[AuthenticatedPrincipal, Depends(get_current_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> UserResponse:
    try:
        user = service.update_profile_picture(principal, body.profile_picture)
    except WardenError as e:
        raise to_http_exception(e) from e
    return UserResponse.model_validate(user)


@router.put("/reset-password", response_model=MessageResponse)
def request_password_reset(
    body: AccountEmailRequest,
    _principal: Annotated[AuthenticatedPrincipal, Depends(get_current_principal)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> MessageResponse:
    """Email a password reset link to the given account."""
    try:
        service.request_password_reset(body.email)
    except WardenError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Reset password email sent successfully")
