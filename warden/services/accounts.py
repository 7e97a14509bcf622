"""Account orchestration: registration, login, refresh, profile, password reset and admin transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from warden.core.errors import (
    DuplicateEmail,
    DuplicateKeyError,
    DuplicateUsername,
    InvalidCredentials,
    InvalidUser,
    NotFound,
    RecordNotFound,
    StorageError,
    ValidationError,
)
from warden.core.security import BCRYPT_ROUNDS, hash_password, verify_password
from warden.core.tokens import AuthenticatedPrincipal, TokenDomain, TokenEngine, TokenPair
from warden.models import AccountStatus, Role, User
from warden.services.account_state import (
    AccountState,
    Transition,
    apply_transition,
    is_role_transition,
)
from warden.services.usernames import (
    USERNAME_MAX_LENGTH,
    USERNAME_MAX_SUFFIX,
    allocate_username,
)

if TYPE_CHECKING:
    from warden.core.config import Settings
    from warden.services.mailer import PasswordResetMailer
    from warden.services.repository import UserRepository

logger = logging.getLogger(__name__)

DATE_OF_BIRTH_FORMAT = "%d-%m-%Y"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def parse_date_of_birth(value: str) -> date:
    """Parse DD-MM-YYYY. Raises ValidationError on any other shape."""
    try:
        return datetime.strptime(value.strip(), DATE_OF_BIRTH_FORMAT).date()
    except ValueError as e:
        raise ValidationError("date_of_birth must use the DD-MM-YYYY format.") from e


def _duplicate_error(e: DuplicateKeyError) -> Exception:
    if e.field == "email":
        return DuplicateEmail("User email already exists")
    if e.field == "username":
        return DuplicateUsername("User firstname and lastname combination already exists")
    return e


def _utcnow() -> datetime:
    return datetime.now(UTC)


@contextmanager
def _account_lookup() -> Iterator[None]:
    """Storage misses surface as NotFound."""
    try:
        yield
    except RecordNotFound as e:
        raise NotFound(e.message) from e


class AccountService:
    """Ties the hasher, token engine, username allocator and transition rules to storage."""

    def __init__(
        self,
        repository: UserRepository,
        tokens: TokenEngine,
        mailer: PasswordResetMailer,
        *,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
        username_max_length: int = USERNAME_MAX_LENGTH,
        username_max_suffix: int = USERNAME_MAX_SUFFIX,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._tokens = tokens
        self._mailer = mailer
        self._bcrypt_rounds = bcrypt_rounds
        self._username_max_length = username_max_length
        self._username_max_suffix = username_max_suffix
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        repository: UserRepository,
        tokens: TokenEngine,
        mailer: PasswordResetMailer,
    ) -> AccountService:
        return cls(
            repository,
            tokens,
            mailer,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
            username_max_length=settings.USERNAME_MAX_LENGTH,
            username_max_suffix=settings.USERNAME_MAX_SUFFIX,
        )

    # Registration and login

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role | str = Role.USER,
    ) -> User:
        """
        Create an account with a derived username.

        Raises DuplicateEmail / DuplicateUsername when storage reports a unique violation.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")
        if not password:
            raise ValidationError("Password is required.")
        try:
            role = Role(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role!r}") from e

        password_hash = hash_password(password, rounds=self._bcrypt_rounds)
        username = allocate_username(
            first_name,
            last_name,
            self._repo.count_by_username,
            max_length=self._username_max_length,
            max_suffix=self._username_max_suffix,
        )
        user = User(
            id=uuid4(),
            email=email,
            username=username,
            password_hash=password_hash,
            first_name=(first_name or "").lower(),
            last_name=(last_name or "").lower(),
            role=role,
            account_status=AccountStatus.ACTIVE,
        )
        try:
            created = self._repo.insert_user(user)
        except DuplicateKeyError as e:
            raise _duplicate_error(e) from e
        logger.info(
            "User registered",
            extra={"user_id": str(created.id), "username": created.username, "role": str(role)},
        )
        return created

    def login(self, email: str, password: str) -> TokenPair:
        """
        Verify credentials, issue a token pair and store the refresh token.

        Unknown email raises NotFound; wrong password raises InvalidCredentials.
        A failed last-login update is logged and does not fail the login.
        """
        with _account_lookup():
            user = self._repo.find_user_by_email(normalize_email(email))
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials("Incorrect password")

        pair = self._tokens.issue_token_pair(user.id, user.username, user.email, user.role)
        self._repo.insert_refresh_token(user.id, pair.refresh_token, pair.refresh_expires_at)
        logger.info("Refresh token stored", extra={"user_id": str(user.id)})

        try:
            self._repo.update_last_login(user.id, self._clock())
        except StorageError:
            logger.warning(
                "Failed to update last login",
                extra={"user_id": str(user.id)},
                exc_info=True,
            )

        logger.info("User logged in", extra={"user_id": str(user.id)})
        return pair

    def refresh(self, refresh_token: str) -> tuple[str, str]:
        """New access token for a valid refresh token; the refresh token is returned unchanged."""
        access_token = self._tokens.refresh_access_token(refresh_token)
        return access_token, refresh_token

    def authenticate(self, access_token: str) -> AuthenticatedPrincipal:
        claims = self._tokens.parse_and_validate(access_token, TokenDomain.ACCESS)
        return AuthenticatedPrincipal.from_claims(claims)

    # Profile

    def get_account(self, user_id: UUID) -> User:
        with _account_lookup():
            return self._repo.find_user_by_id(user_id)

    def update_profile(
        self,
        principal: AuthenticatedPrincipal,
        *,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        phone_number: str | None = None,
        gender: str | None = None,
        date_of_birth: str | None = None,
    ) -> User:
        """Overwrite only the fields given as non-empty values."""
        fields: dict[str, object] = {}
        if email:
            fields["email"] = normalize_email(email)
        if first_name:
            fields["first_name"] = first_name
        if last_name:
            fields["last_name"] = last_name
        if phone_number:
            fields["phone_number"] = phone_number
        if gender:
            fields["gender"] = gender
        if date_of_birth:
            fields["date_of_birth"] = parse_date_of_birth(date_of_birth)

        if not fields:
            return self.get_account(principal.user_id)
        try:
            with _account_lookup():
                return self._repo.update_user(principal.user_id, fields)
        except DuplicateKeyError as e:
            raise _duplicate_error(e) from e

    def update_profile_picture(
        self, principal: AuthenticatedPrincipal, profile_picture: str | None
    ) -> User:
        with _account_lookup():
            return self._repo.update_user(
                principal.user_id, {"profile_picture": profile_picture or None}
            )

    # Password reset

    def request_password_reset(self, email: str) -> None:
        """Email a fresh reset token to the account. Raises InvalidUser if there is none."""
        try:
            user = self._repo.find_user_by_email(normalize_email(email))
        except RecordNotFound as e:
            raise InvalidUser("invalid user") from e
        reset_token = self._tokens.issue_reset_token(user.id)
        self._mailer.send_password_reset_email(user.id, user.email, reset_token)
        logger.info("Password reset requested", extra={"user_id": str(user.id)})

    def verify_reset_token(self, reset_token: str) -> UUID:
        return self._tokens.verify_reset_token(reset_token)

    def perform_password_reset(self, reset_token: str, new_password: str) -> None:
        """Replace the stored hash. Does not remember used tokens; single use is up to the caller."""
        if not new_password:
            raise ValidationError("Password is required.")
        user_id = self._tokens.verify_reset_token(reset_token)
        password_hash = hash_password(new_password, rounds=self._bcrypt_rounds)
        with _account_lookup():
            self._repo.update_password_hash(user_id, password_hash)
        logger.info("Password reset completed", extra={"user_id": str(user_id)})

    # Administration

    def _transition(self, email: str, transition: Transition) -> User:
        with _account_lookup():
            user = self._repo.find_user_by_email(normalize_email(email))
        current = AccountState(role=user.role, status=user.account_status)
        target = apply_transition(current, transition)
        if is_role_transition(transition):
            with _account_lookup():
                updated = self._repo.update_role(user.id, target.role)
        else:
            with _account_lookup():
                updated = self._repo.update_status(user.id, target.status)
        logger.info(
            "Account transition applied",
            extra={
                "user_id": str(user.id),
                "transition": transition.value,
                "role": str(target.role),
                "account_status": str(target.status),
            },
        )
        return updated

    def promote_to_admin(self, email: str) -> User:
        return self._transition(email, Transition.PROMOTE_TO_ADMIN)

    def promote_to_superadmin(self, email: str) -> User:
        return self._transition(email, Transition.PROMOTE_TO_SUPERADMIN)

    def demote_superadmin_to_admin(self, email: str) -> User:
        return self._transition(email, Transition.DEMOTE_SUPERADMIN_TO_ADMIN)

    def demote_superadmin_to_user(self, email: str) -> User:
        return self._transition(email, Transition.DEMOTE_SUPERADMIN_TO_USER)

    def demote_admin_to_user(self, email: str) -> User:
        return self._transition(email, Transition.DEMOTE_ADMIN_TO_USER)

    def suspend(self, email: str) -> User:
        return self._transition(email, Transition.SUSPEND)

    def recover(self, email: str) -> User:
        return self._transition(email, Transition.RECOVER)

    def delete(self, email: str) -> User:
        return self._transition(email, Transition.DELETE)

    def list_users(self, limit: int, offset: int) -> list[User]:
        return self._repo.list_users(limit, offset)

    def list_by_role(self, role: Role, limit: int, offset: int) -> list[User]:
        return self._repo.list_by_role(role, limit, offset)

    def list_by_status(self, status: AccountStatus, limit: int, offset: int) -> list[User]:
        return self._repo.list_by_status(status, limit, offset)

    def list_inactive(self, limit: int, offset: int) -> list[User]:
        return self._repo.list_inactive(limit, offset)
