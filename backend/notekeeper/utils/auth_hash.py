"""Password hashing helpers using passlib.

Used by the account registration and login flow:
- hash_password(plain: str) -> str
- verify_password(plain: str, hashed: str) -> bool

Hashes with bcrypt through passlib's CryptContext, falling back to
pbkdf2_sha256 when the bcrypt backend cannot be loaded. The cost can be set
with the `BCRYPT_ROUNDS` environment variable (int).
"""
from __future__ import annotations

import logging
import os

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


def _rounds() -> int | None:
    value = os.environ.get("BCRYPT_ROUNDS")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _build_context(rounds: int | None) -> CryptContext:
    try:
        if rounds:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        else:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
        ctx.hash("backend-check")
        return ctx
    except Exception as exc:
        logger.warning("bcrypt backend unavailable, falling back to pbkdf2_sha256: %s", exc)
    if rounds:
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", pbkdf2_sha256__rounds=rounds)
    return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


pwd_context = _build_context(_rounds())


def hash_password(plain: str) -> str:
    """Hash a plaintext password and return the encoded hash string."""
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored hash.

    Returns True if the password matches, False otherwise.
    """
    if plain is None or hashed is None:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False
