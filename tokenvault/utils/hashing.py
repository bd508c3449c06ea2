"""Hashing helpers for lookups, session identifiers and passwords.

These helpers need no master key. Email hashes allow lookups without storing
the address in a searchable column; passwords are stored as PBKDF2 hashes.
"""

import base64
import binascii
import hashlib
import os
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_LENGTH = 64
DERIVED_KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000


def hash_email(email: str) -> str:
    """Hash an email address for lookups.

    The address is trimmed and lower-cased first, so variants of the same
    address produce the same hash.

    Returns:
        SHA-256 digest as 64 lowercase hex characters.
    """
    normalized = email.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def generate_session_id(length: int = 36) -> str:
    """Generate a URL-safe random session identifier of exactly length characters."""
    if length <= 0:
        raise ValueError("length must be positive")
    # token_urlsafe yields ~1.3 characters per byte
    return secrets.token_urlsafe(length)[:length]


def _kdf(salt: bytes) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )


def hash_password(password: str) -> str:
    """Hash a password with PBKDF2-HMAC-SHA256.

    Args:
        password: Plaintext password.

    Returns:
        Base64 of salt (64 bytes) followed by the derived key (32 bytes).
    """
    salt = os.urandom(SALT_LENGTH)
    derived = _kdf(salt).derive(password.encode("utf-8"))
    return base64.b64encode(salt + derived).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a hash produced by hash_password().

    Comparison is constant-time. Malformed hashes never match.

    Returns:
        True if the password matches.
    """
    try:
        raw = base64.b64decode(hashed, validate=True)
    except (binascii.Error, ValueError):
        return False
    if len(raw) != SALT_LENGTH + DERIVED_KEY_LENGTH:
        return False

    salt, expected = raw[:SALT_LENGTH], raw[SALT_LENGTH:]
    try:
        _kdf(salt).verify(password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True
