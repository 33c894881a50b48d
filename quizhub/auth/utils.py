import re
from typing import Optional

from flask import current_app
from passlib.hash import bcrypt


EMAIL_REGEX = re.compile(r"^[^@]+@[^@]+\.[^@]+$")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _bcrypt_input(plain_password: str) -> str:
    # Cut on a byte boundary and drop a partial multi-byte character
    return plain_password.encode('utf-8')[:BCRYPT_MAX_BYTES].decode('utf-8', errors='ignore')


def hash_password(plain_password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    return bcrypt.using(rounds=rounds).hash(_bcrypt_input(plain_password))


def verify_password(plain_password: str, password_hash: str) -> bool:
    return bcrypt.verify(_bcrypt_input(plain_password), password_hash)


def normalize_email(email) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_REGEX.match(email))


def validate_registration(email: str, password, full_name: str) -> Optional[str]:
    """
    Check a registration request.

    Returns an error message for the first problem found, or None when
    the request is acceptable. ``email`` is expected to be normalized.
    """
    if not email or not password or not full_name:
        return "Email, password and full name are required"
    if not isinstance(password, str):
        return "Password must be a string"
    if not is_valid_email(email):
        return "Please provide a valid email address"

    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 8)
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters long"
    return None
