"""
Security utilities for authentication.

Provides password hashing, session token generation and validation, and the
helpers that place the token in (or remove it from) the session cookie.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Response
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


# ==================== PASSWORD HASHING ====================

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def password_fits(password: str) -> bool:
    """Whether bcrypt can hash the password without truncating it."""
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=settings.PASSWORD_HASH_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: Stored hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False


# ==================== SESSION TOKENS ====================


def create_session_token(user_id: str) -> str:
    """
    Create a signed session token for a user.

    Args:
        user_id: User's UUID

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS)

    payload = {
        "userId": user_id,
        "iat": now,
        "exp": expire,
    }

    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    logger.debug(f"Created session token for user {user_id}, expires at {expire}")
    return token


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a session token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except InvalidTokenError as e:
        logger.warning(f"Invalid session token: {e}")
        return None

    if not payload.get("userId"):
        logger.warning("Session token without user id")
        return None

    return payload


# ==================== SESSION COOKIE ====================


def set_session_cookie(response: Response, user_id: str) -> str:
    """
    Issue a session token and store it in an HTTP-only cookie.

    Args:
        response: Outgoing response
        user_id: User the session belongs to

    Returns:
        The issued token
    """
    token = create_session_token(user_id)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=not settings.is_development,
        samesite="strict",
    )
    return token


def clear_session_cookie(response: Response) -> None:
    """Overwrite the session cookie with an empty, already expired value."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value="",
        httponly=True,
        expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
    )
