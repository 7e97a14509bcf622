"""Derive a unique, sanitized username from a first/last name pair."""

import re
from collections.abc import Callable

from warden.core.errors import AllocationExhausted

USERNAME_MAX_LENGTH = 20
USERNAME_MAX_SUFFIX = 10000

# Used when a name pair has no characters left after sanitizing.
FALLBACK_BASE = "user"

_DISALLOWED = re.compile(r"[^a-zA-Z0-9_.-]+")


def sanitize_username(raw: str) -> str:
    """Lowercase and drop every character outside [a-zA-Z0-9_.-]."""
    return _DISALLOWED.sub("", raw.lower())


def base_username(first_name: str, last_name: str, max_length: int = USERNAME_MAX_LENGTH) -> str:
    base = sanitize_username(f"{first_name or ''}{last_name or ''}")
    return (base or FALLBACK_BASE)[:max_length]


def candidate_with_suffix(base: str, suffix: int, max_length: int = USERNAME_MAX_LENGTH) -> str:
    """Append suffix, cutting the base so the whole candidate fits max_length."""
    suffix_str = str(suffix)
    return base[: max_length - len(suffix_str)] + suffix_str


def allocate_username(
    first_name: str,
    last_name: str,
    count_by_username: Callable[[str], int],
    max_length: int = USERNAME_MAX_LENGTH,
    max_suffix: int = USERNAME_MAX_SUFFIX,
) -> str:
    """
    Return the first free candidate: the bare base, then base1, base2, ... up to max_suffix.

    count_by_username is queried once per candidate; storage errors it raises propagate.
    Raises AllocationExhausted when every candidate up to max_suffix is taken.
    """
    base = base_username(first_name, last_name, max_length)
    if count_by_username(base) == 0:
        return base
    for suffix in range(1, max_suffix + 1):
        candidate = candidate_with_suffix(base, suffix, max_length)
        if count_by_username(candidate) == 0:
            return candidate
    raise AllocationExhausted(
        f"No free username for base {base!r} after {max_suffix} suffixes."
    )
