"""Unit tests for the token engine: domains, expiry boundary, algorithm pinning, reset tokens."""

import base64
import json
import unittest
from datetime import timedelta
from uuid import UUID, uuid4

import jwt

from tests.support import FIXED_NOW, TEST_SECRETS, fixed_clock, make_token_engine
from warden.core.errors import (
    Expired,
    InvalidSignature,
    Malformed,
    TokenError,
    UnexpectedAlgorithm,
)
from warden.core.tokens import (
    AuthenticatedPrincipal,
    TokenDomain,
    TokenEngine,
    TokenLifetimes,
    TokenSecrets,
)
from warden.models.enums import Role

USER_ID = UUID("8a0f0b5e-4a39-4d6f-9c2e-1f2d3c4b5a69")


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _claims(exp_offset: int = 3600) -> dict:
    now = int(FIXED_NOW.timestamp())
    return {
        "user_id": str(USER_ID),
        "username": "johndoe",
        "email": "john@example.com",
        "role": "user",
        "iat": now,
        "exp": now + exp_offset,
        "sub": str(USER_ID),
    }


class TestAccessTokens(unittest.TestCase):
    """Access tokens round-trip their claims within the access domain."""

    def setUp(self) -> None:
        self.engine = make_token_engine(clock=fixed_clock())

    def test_round_trip_claims(self) -> None:
        token = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.ADMIN)
        claims = self.engine.parse_and_validate(token, TokenDomain.ACCESS)
        self.assertEqual(claims.user_id, USER_ID)
        self.assertEqual(claims.username, "johndoe")
        self.assertEqual(claims.email, "john@example.com")
        self.assertEqual(claims.role, Role.ADMIN)
        self.assertEqual(claims.subject, str(USER_ID))
        self.assertEqual(claims.issued_at, FIXED_NOW)
        self.assertEqual(claims.expires_at, FIXED_NOW + timedelta(hours=24))

    def test_principal_from_claims(self) -> None:
        token = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        principal = AuthenticatedPrincipal.from_claims(
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)
        )
        self.assertEqual(principal.user_id, USER_ID)
        self.assertFalse(principal.is_admin)

    def test_access_token_rejected_in_refresh_domain(self) -> None:
        token = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        with self.assertRaises(InvalidSignature):
            self.engine.parse_and_validate(token, TokenDomain.REFRESH)

    def test_reset_domain_is_not_parsed_for_claims(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.parse_and_validate("anything", TokenDomain.RESET)


class TestExpiryBoundary(unittest.TestCase):
    """A token is valid strictly before exp and expired from exp onwards."""

    def setUp(self) -> None:
        issuer = make_token_engine(clock=fixed_clock())
        self.token = issuer.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        self.exp = FIXED_NOW + timedelta(hours=24)

    def test_valid_one_second_before_exp(self) -> None:
        engine = make_token_engine(clock=fixed_clock(self.exp - timedelta(seconds=1)))
        claims = engine.parse_and_validate(self.token, TokenDomain.ACCESS)
        self.assertEqual(claims.user_id, USER_ID)

    def test_expired_at_exp(self) -> None:
        engine = make_token_engine(clock=fixed_clock(self.exp))
        with self.assertRaises(Expired):
            engine.parse_and_validate(self.token, TokenDomain.ACCESS)

    def test_expired_after_exp(self) -> None:
        engine = make_token_engine(clock=fixed_clock(self.exp + timedelta(days=1)))
        with self.assertRaises(Expired):
            engine.parse_and_validate(self.token, TokenDomain.ACCESS)

    def test_custom_lifetime(self) -> None:
        engine = TokenEngine(
            TEST_SECRETS,
            TokenLifetimes(access=timedelta(minutes=5)),
            clock=fixed_clock(),
        )
        token = engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        claims = engine.parse_and_validate(token, TokenDomain.ACCESS)
        self.assertEqual(claims.expires_at, FIXED_NOW + timedelta(minutes=5))


class TestRejectedTokens(unittest.TestCase):
    """Forged, tampered and malformed tokens map to distinct errors."""

    def setUp(self) -> None:
        self.engine = make_token_engine(clock=fixed_clock())

    def test_alg_none_is_unexpected_algorithm(self) -> None:
        token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(_claims())}."
        with self.assertRaises(UnexpectedAlgorithm):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_rs256_header_is_unexpected_algorithm(self) -> None:
        token = f"{_b64({'alg': 'RS256', 'typ': 'JWT'})}.{_b64(_claims())}.c2lnbmF0dXJl"
        with self.assertRaises(UnexpectedAlgorithm):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_wrong_secret_is_invalid_signature(self) -> None:
        token = jwt.encode(_claims(), "some-other-secret-0123456789abcdefghij", algorithm="HS256")
        with self.assertRaises(InvalidSignature):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_tampered_payload_is_invalid_signature(self) -> None:
        token = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        header, _, signature = token.split(".")
        forged = _claims()
        forged["role"] = "superadmin"
        with self.assertRaises(InvalidSignature):
            self.engine.parse_and_validate(
                f"{header}.{_b64(forged)}.{signature}", TokenDomain.ACCESS
            )

    def test_garbage_is_malformed(self) -> None:
        with self.assertRaises(Malformed):
            self.engine.parse_and_validate("not-a-token", TokenDomain.ACCESS)

    def test_empty_is_malformed(self) -> None:
        with self.assertRaises(Malformed):
            self.engine.parse_and_validate("", TokenDomain.ACCESS)

    def test_missing_exp_is_malformed(self) -> None:
        payload = _claims()
        del payload["exp"]
        token = jwt.encode(payload, TEST_SECRETS.access, algorithm="HS256")
        with self.assertRaises(Malformed):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_unknown_role_is_malformed(self) -> None:
        payload = _claims()
        payload["role"] = "root"
        token = jwt.encode(payload, TEST_SECRETS.access, algorithm="HS256")
        with self.assertRaises(Malformed):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_all_errors_are_token_errors(self) -> None:
        for cls in (Expired, InvalidSignature, Malformed, UnexpectedAlgorithm):
            self.assertTrue(issubclass(cls, TokenError))


class TestRefresh(unittest.TestCase):
    """Refresh tokens mint new access tokens and are not rotated."""

    def setUp(self) -> None:
        self.engine = make_token_engine(clock=fixed_clock())

    def test_token_pair(self) -> None:
        pair = self.engine.issue_token_pair(USER_ID, "johndoe", "john@example.com", Role.USER)
        self.assertEqual(pair.refresh_expires_at, FIXED_NOW + timedelta(days=90))
        self.assertEqual(
            self.engine.parse_and_validate(pair.access_token, TokenDomain.ACCESS).user_id, USER_ID
        )
        self.assertEqual(
            self.engine.parse_and_validate(pair.refresh_token, TokenDomain.REFRESH).user_id,
            USER_ID,
        )

    def test_refresh_access_token(self) -> None:
        refresh_token, _ = self.engine.issue_refresh_token(
            USER_ID, "johndoe", "john@example.com", Role.SUPERADMIN
        )
        access = self.engine.refresh_access_token(refresh_token)
        claims = self.engine.parse_and_validate(access, TokenDomain.ACCESS)
        self.assertEqual(claims.username, "johndoe")
        self.assertEqual(claims.role, Role.SUPERADMIN)

    def test_access_token_cannot_refresh(self) -> None:
        access = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        with self.assertRaises(InvalidSignature):
            self.engine.refresh_access_token(access)

    def test_refresh_with_empty_username_is_malformed(self) -> None:
        payload = _claims()
        payload["username"] = ""
        token = jwt.encode(payload, TEST_SECRETS.refresh, algorithm="HS256")
        with self.assertRaises(Malformed):
            self.engine.refresh_access_token(token)

    def test_refresh_with_nil_user_id_is_malformed(self) -> None:
        payload = _claims()
        payload["user_id"] = "00000000-0000-0000-0000-000000000000"
        token = jwt.encode(payload, TEST_SECRETS.refresh, algorithm="HS256")
        with self.assertRaises(Malformed):
            self.engine.refresh_access_token(token)

    def test_expired_refresh_token(self) -> None:
        refresh_token, expires_at = self.engine.issue_refresh_token(
            USER_ID, "johndoe", "john@example.com", Role.USER
        )
        later = make_token_engine(clock=fixed_clock(expires_at))
        with self.assertRaises(Expired):
            later.refresh_access_token(refresh_token)


class TestResetTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_token_engine(clock=fixed_clock())

    def test_round_trip(self) -> None:
        user_id = uuid4()
        token = self.engine.issue_reset_token(user_id)
        self.assertEqual(self.engine.verify_reset_token(token), user_id)
        # Verification does not consume the token.
        self.assertEqual(self.engine.verify_reset_token(token), user_id)

    def test_expires_after_thirty_minutes(self) -> None:
        token = self.engine.issue_reset_token(USER_ID)
        still_valid = make_token_engine(clock=fixed_clock(FIXED_NOW + timedelta(minutes=29)))
        self.assertEqual(still_valid.verify_reset_token(token), USER_ID)
        expired = make_token_engine(clock=fixed_clock(FIXED_NOW + timedelta(minutes=30)))
        with self.assertRaises(Expired):
            expired.verify_reset_token(token)

    def test_reset_token_rejected_as_access_token(self) -> None:
        token = self.engine.issue_reset_token(USER_ID)
        with self.assertRaises(InvalidSignature):
            self.engine.parse_and_validate(token, TokenDomain.ACCESS)

    def test_access_token_rejected_as_reset_token(self) -> None:
        access = self.engine.issue_access_token(USER_ID, "johndoe", "john@example.com", Role.USER)
        with self.assertRaises(InvalidSignature):
            self.engine.verify_reset_token(access)

    def test_wrong_purpose_is_malformed(self) -> None:
        payload = {"sub": str(USER_ID), "purpose": "login", "iat": 1, "exp": 2**31}
        token = jwt.encode(payload, TEST_SECRETS.reset, algorithm="HS256")
        with self.assertRaises(Malformed):
            self.engine.verify_reset_token(token)


class TestSecrets(unittest.TestCase):
    def test_secrets_must_differ(self) -> None:
        with self.assertRaises(ValueError):
            TokenSecrets(access="same", refresh="same", reset="other")

    def test_secrets_must_be_non_empty(self) -> None:
        with self.assertRaises(ValueError):
            TokenSecrets(access="", refresh="b", reset="c")

    def test_repr_hides_values(self) -> None:
        self.assertNotIn(TEST_SECRETS.access, repr(TEST_SECRETS))

    def test_engine_rejects_non_hmac_algorithm(self) -> None:
        with self.assertRaises(ValueError):
            TokenEngine(TEST_SECRETS, algorithm="RS256")


if __name__ == "__main__":
    unittest.main()
