"""Request/response schemas for registration, login and token refresh."""

from pydantic import BaseModel, EmailStr, Field, model_validator

from warden.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from warden.models.enums import Role


class RegisterRequest(BaseModel):
    """New account details. The username is derived from the names."""

    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    user_role: Role = Field(default=Role.USER, description="Initial role")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from login")


class TokenPairResponse(BaseModel):
    """Access and refresh tokens. Send the access token as: Authorization: Bearer <access_token>"""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")


class ResetPasswordForm(BaseModel):
    """Fields posted by the browser reset form."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordForm":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
