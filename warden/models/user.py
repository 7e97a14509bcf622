"""ORM model for user accounts (identity, credential, profile, role and status)."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    String,
    UniqueConstraint,
    Uuid,
    func,
)

from warden.models.base import Base
from warden.models.enums import AccountStatus, Role

# Constraint names double as the key the repository uses to tell duplicate fields apart.
UQ_USERS_EMAIL = "uq_users_email"
UQ_USERS_USERNAME = "uq_users_username"


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    """
    User account for JWT authentication and role-based administration.

    Accounts are never removed; account_status='deleted' is a soft delete.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name=UQ_USERS_EMAIL),
        UniqueConstraint("username", name=UQ_USERS_USERNAME),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False)
    username = Column(String(64), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(32), nullable=True)
    profile_picture = Column(String(2048), nullable=True)
    role = Column(
        Enum(Role, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=Role.USER,
        index=True,
    )
    account_status = Column(
        Enum(AccountStatus, name="account_status", values_callable=_enum_values),
        nullable=False,
        default=AccountStatus.ACTIVE,
        index=True,
    )
    # Reserved; multi-factor auth is not implemented.
    mfa_enabled = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    last_login = Column(DateTime(timezone=True), nullable=True)
