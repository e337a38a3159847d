"""Password hashing and verification with bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72


class PasswordMismatchError(ValueError):
    """Raised when a password does not match its hash."""


def hash_password(password: str) -> str:
    """Return the bcrypt hash of ``password`` at the default cost."""
    raw = password.encode("utf-8")
    if len(raw) > _MAX_PASSWORD_BYTES:
        raise ValueError("failed to hash password: password length exceeds 72 bytes")
    salt = bcrypt.gensalt(rounds=DEFAULT_COST, prefix=b"2a")
    return bcrypt.hashpw(raw, salt).decode("ascii")


def check_password(password: str, hashed_password: str) -> None:
    """Check ``password`` against ``hashed_password``.

    Raises PasswordMismatchError when they do not match and ValueError when the
    hash is malformed.
    """
    raw = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    try:
        hashed = hashed_password.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("malformed bcrypt hash") from exc
    try:
        matched = bcrypt.checkpw(raw, hashed)
    except ValueError as exc:
        raise ValueError(f"malformed bcrypt hash: {exc}") from exc
    if not matched:
        raise PasswordMismatchError(
            "hashedPassword is not the hash of the given password"
        )