"""
Password hashing, session tokens and reset-token primitives.
"""

import hashlib
import secrets
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt

from app.core.clock import utcnow
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import InvalidTokenError, TokenExpiredError

RESET_TOKEN_BYTES = 32


def get_password_hash(password: str, settings: Settings = default_settings) -> str:
    """Hash a password with a fresh salt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    settings: Settings = default_settings,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Mint a signed session token carrying identity and role."""
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str, settings: Settings = default_settings) -> Dict[str, Any]:
    """Decode and validate a session token.

    Raises TokenExpiredError past expiry and InvalidTokenError for a bad
    signature or a malformed payload.
    """
    if not token:
        raise InvalidTokenError()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require": ["sub", "exp", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()

    try:
        uuid.UUID(payload["sub"])
    except (ValueError, TypeError, AttributeError):
        raise InvalidTokenError()

    if payload.get("role") not in ("admin", "employee"):
        raise InvalidTokenError()

    return payload


def generate_reset_token() -> str:
    """Random opaque token, 256 bits of entropy, hex encoded."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
