"""SQLAlchemy-backed storage for user accounts and refresh tokens."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from warden.core.errors import DuplicateKeyError, RecordNotFound, StorageError
from warden.models import AccountStatus, RefreshToken, Role, User
from warden.models.user import UQ_USERS_EMAIL, UQ_USERS_USERNAME

logger = logging.getLogger(__name__)

_CONSTRAINT_FIELDS = {
    UQ_USERS_EMAIL: "email",
    UQ_USERS_USERNAME: "username",
}

# Columns a profile update may touch. Role, status and password have their own operations.
PROFILE_FIELDS = frozenset(
    {
        "email",
        "first_name",
        "last_name",
        "phone_number",
        "gender",
        "date_of_birth",
        "profile_picture",
    }
)


class UserRepository:
    """
    Storage operations the account service needs, one transaction per call.

    Missing rows raise RecordNotFound; unique violations raise DuplicateKeyError(field);
    any other database failure is wrapped in StorageError.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _commit(self, operation: str, email: str | None = None, username: str | None = None) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            field = self._duplicate_field(e, email, username)
            if field is None:
                raise StorageError(f"{operation} violated a database constraint.") from e
            raise DuplicateKeyError(field) from e
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError(f"{operation} failed.") from e

    def _duplicate_field(
        self, exc: IntegrityError, email: str | None, username: str | None
    ) -> str | None:
        constraint = getattr(getattr(exc.orig, "diag", None), "constraint_name", None)
        if constraint in _CONSTRAINT_FIELDS:
            return _CONSTRAINT_FIELDS[constraint]
        # Backends without constraint diagnostics (e.g. SQLite): look the values up instead.
        try:
            if email is not None and self._exists(User.email == email):
                return "email"
            if username is not None and self._exists(User.username == username):
                return "username"
        except SQLAlchemyError:
            logger.warning("Could not resolve duplicate key field", exc_info=True)
        return None

    def _exists(self, condition: Any) -> bool:
        return self._session.execute(select(User.id).where(condition).limit(1)).first() is not None

    def _query(self, operation: str, stmt: Any) -> Any:
        try:
            return self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError(f"{operation} failed.") from e

    def _get(self, user_id: UUID) -> User:
        user = self._query("Fetch user", select(User).where(User.id == user_id)).scalar_one_or_none()
        if user is None:
            raise RecordNotFound("User not found")
        return user

    def insert_user(self, user: User) -> User:
        self._session.add(user)
        self._commit("Insert user", email=user.email, username=user.username)
        self._session.refresh(user)
        return user

    def find_user_by_email(self, email: str) -> User:
        user = self._query(
            "Fetch user by email", select(User).where(User.email == email)
        ).scalar_one_or_none()
        if user is None:
            raise RecordNotFound("User not found")
        return user

    def find_user_by_id(self, user_id: UUID) -> User:
        return self._get(user_id)

    def count_by_username(self, username: str) -> int:
        return self._query(
            "Count users by username",
            select(func.count()).select_from(User).where(User.username == username),
        ).scalar_one()

    def update_user(self, user_id: UUID, fields: dict[str, Any]) -> User:
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Not profile fields: {', '.join(sorted(unknown))}")
        user = self._get(user_id)
        for name, value in fields.items():
            setattr(user, name, value)
        self._commit("Update user", email=fields.get("email"))
        self._session.refresh(user)
        return user

    def update_role(self, user_id: UUID, role: Role) -> User:
        user = self._get(user_id)
        user.role = role
        self._commit("Update role")
        self._session.refresh(user)
        return user

    def update_status(self, user_id: UUID, status: AccountStatus) -> User:
        user = self._get(user_id)
        user.account_status = status
        self._commit("Update account status")
        self._session.refresh(user)
        return user

    def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        user = self._get(user_id)
        user.password_hash = password_hash
        self._commit("Update password")

    def insert_refresh_token(
        self, user_id: UUID, token: str, expires_at: datetime
    ) -> RefreshToken:
        record = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(record)
        self._commit("Store refresh token")
        self._session.refresh(record)
        return record

    def update_last_login(self, user_id: UUID, timestamp: datetime) -> None:
        user = self._get(user_id)
        user.last_login = timestamp
        self._commit("Update last login")

    def _list(self, operation: str, limit: int, offset: int, *conditions: Any) -> list[User]:
        stmt = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at, User.id)
            .limit(limit)
            .offset(offset)
        )
        return list(self._query(operation, stmt).scalars().all())

    def list_users(self, limit: int, offset: int) -> list[User]:
        return self._list("List users", limit, offset)

    def list_by_role(self, role: Role, limit: int, offset: int) -> list[User]:
        return self._list("List users by role", limit, offset, User.role == role)

    def list_by_status(self, status: AccountStatus, limit: int, offset: int) -> list[User]:
        return self._list("List users by status", limit, offset, User.account_status == status)

    def list_inactive(self, limit: int, offset: int) -> list[User]:
        return self._list(
            "List inactive users", limit, offset, User.account_status != AccountStatus.ACTIVE
        )
