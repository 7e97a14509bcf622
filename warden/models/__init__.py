"""SQLAlchemy ORM models."""

from warden.models.base import Base
from warden.models.enums import AccountStatus, Role
from warden.models.refresh_token import RefreshToken
from warden.models.user import User

__all__ = ["AccountStatus", "Base", "RefreshToken", "Role", "User"]
