"""Schemas for account profiles and administrative operations."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from warden.models.enums import AccountStatus, Role


class UserResponse(BaseModel):
    """Account as returned to clients (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    profile_picture: str | None = None
    role: Role
    account_status: AccountStatus
    mfa_enabled: bool = False
    created_at: datetime | None = None
    last_login: datetime | None = None


class UpdateProfileRequest(BaseModel):
    """Profile changes; empty or missing fields are left unchanged."""

    email: EmailStr | None = None
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=32)
    date_of_birth: str | None = Field(default=None, description="DD-MM-YYYY")
    gender: str | None = Field(default=None, max_length=32)

    @field_validator("*", mode="before")
    @classmethod
    def empty_as_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProfilePictureRequest(BaseModel):
    profile_picture: str = Field(..., max_length=2048, description="Picture URL or storage key")


class AccountEmailRequest(BaseModel):
    """Identifies the account an operation applies to."""

    email: EmailStr


class UsersListResponse(BaseModel):
    """Page of accounts for admin listings."""

    users: list[UserResponse]
    limit: int
    offset: int


class MessageResponse(BaseModel):
    message: str
