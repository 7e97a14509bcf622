"""Shared builders for tests: in-memory SQLite sessions and a token engine with test secrets."""

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from warden.core.tokens import TokenEngine, TokenSecrets
from warden.models import Base
from warden.services.accounts import AccountService
from warden.services.repository import UserRepository

# Lowest bcrypt cost; keeps hashing fast in tests.
TEST_BCRYPT_ROUNDS = 4

TEST_SECRETS = TokenSecrets(
    access="test-access-secret-0123456789abcdefghijklmnop",
    refresh="test-refresh-secret-0123456789abcdefghijklmno",
    reset="test-reset-secret-0123456789abcdefghijklmnopq",
)

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


def make_engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


def make_session(engine: Engine) -> Session:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def make_token_engine(clock: Callable[[], datetime] | None = None) -> TokenEngine:
    return TokenEngine(TEST_SECRETS, clock=clock)


def fixed_clock(moment: datetime = FIXED_NOW) -> Callable[[], datetime]:
    return lambda: moment


def make_service(
    session: Session,
    tokens: TokenEngine | None = None,
    mailer: MagicMock | None = None,
) -> AccountService:
    return AccountService(
        UserRepository(session),
        tokens or make_token_engine(),
        mailer or MagicMock(),
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )
