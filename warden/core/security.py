"""Password hashing and verification (bcrypt)."""

import bcrypt

from warden.core.errors import HashingError, MalformedHash

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of the secret.
BCRYPT_MAX_BYTES = 72

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    try:
        salt = bcrypt.gensalt(rounds=rounds)
        return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")
    except (ValueError, TypeError, MemoryError) as e:
        raise HashingError(f"Could not hash password: {e}") from e


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Returns False on mismatch. Raises MalformedHash when the stored value is not a bcrypt hash.
    """
    try:
        hashed_bytes = hashed.encode("utf-8")
    except AttributeError as e:
        raise MalformedHash("Stored password hash is not a string.") from e
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_bytes)
    except (ValueError, TypeError) as e:
        raise MalformedHash("Stored password hash is not a valid bcrypt hash.") from e
