"""E-mail address validation, normalisation and hashing."""

from __future__ import annotations

import hashlib
import re

MIN_EMAIL_LENGTH = 3
MAX_EMAIL_LENGTH = 254

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


class InvalidEmailError(ValueError):
    """Raised when a string is not an acceptable e-mail address."""


def is_valid_email(email: str) -> bool:
    """Return True if ``email`` has an acceptable length and shape."""
    length = len(email.encode("utf-8"))
    if length < MIN_EMAIL_LENGTH or length > MAX_EMAIL_LENGTH:
        return False
    return _EMAIL_PATTERN.fullmatch(email) is not None


def sanitize_email(email: str) -> str:
    """Lower-case, trim and strip null bytes from an address."""
    return email.strip().lower().replace("\x00", "")


def hash_email(email: str) -> str:
    """Return the hex SHA-256 digest of the sanitised address."""
    return hashlib.sha256(sanitize_email(email).encode("utf-8")).hexdigest()


def validate_and_hash_email(email: str) -> str:
    """Sanitise and validate ``email``, returning its hash.

    Raises InvalidEmailError if the sanitised address is not valid.
    """
    sanitized = sanitize_email(email)
    if not is_valid_email(sanitized):
        raise InvalidEmailError(f"invalid email format: {email!r}")
    return hash_email(sanitized)