"""Bearer tokens (PyJWT) and bcrypt password hashes for the Users table."""

import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.config import settings

REQUIRED_CLAIMS = ["sub", "exp", "iat"]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, stored_hash: str) -> bool:
    """Check ``password`` against a stored hash.

    A stored value that is not a bcrypt hash never matches.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        return False


def token_expiry_seconds() -> int:
    return settings.JWT_EXPIRY_HOURS * 3600


def create_access_token(
    user_id: int,
    user_name: str,
    admin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(seconds=token_expiry_seconds())
    claims = {
        "sub": str(user_id),
        "userName": user_name,
        "admin": admin,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry. Raises ``jwt.PyJWTError`` on any failure."""
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )
