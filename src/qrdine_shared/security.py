"""
Security helpers for hashing staff credentials.
"""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

PASSWORD_HASH_METHOD = "pbkdf2:sha256:600000"
PASSWORD_SALT_LENGTH = 16


def hash_password(password: str) -> str:
    """
    Hash a password with a per-record random salt. Only the hash is stored.
    """
    return generate_password_hash(
        password, method=PASSWORD_HASH_METHOD, salt_length=PASSWORD_SALT_LENGTH
    )


def verify_password(password: str | None, stored_hash: str | None) -> bool:
    """
    Compare a candidate password against the stored hash in constant time.
    """
    if not stored_hash or password is None:
        return False
    return check_password_hash(stored_hash, password)
