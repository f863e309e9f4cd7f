"""
Dependency functions for the user service.

Resolves the signed-in user from the session cookie and guards admin routes.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request

from .account_service import account_service
from .config import settings
from .exceptions import NotAuthorizedError, ResourceNotFoundError
from .logging_config import get_logger
from .security import decode_session_token

logger = get_logger(__name__)


def get_session_token(request: Request) -> Optional[str]:
    """Read the session token from the request cookies."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


async def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Dependency that loads the user owning the session cookie.

    Returns:
        User row without the password hash

    Raises:
        NotAuthorizedError: If the cookie is missing, the token is invalid,
            or the user no longer exists
    """
    token = get_session_token(request)
    if not token:
        raise NotAuthorizedError("Not authorized, no token")

    payload = decode_session_token(token)
    if not payload:
        raise NotAuthorizedError("Not authorized, token failed")

    try:
        user = await account_service.users.find_by_id(payload["userId"])
    except ResourceNotFoundError:
        user = None

    if not user:
        logger.warning("Session token refers to unknown user")
        raise NotAuthorizedError("Not authorized, token failed")

    return user


async def require_admin(
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Dependency that only lets administrators through.

    Raises:
        NotAuthorizedError: If the signed-in user is not an administrator
    """
    if not current_user.get("is_admin"):
        raise NotAuthorizedError("Not authorized as admin")
    return current_user


__all__ = ["get_current_user", "get_session_token", "require_admin"]
