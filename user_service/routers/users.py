"""
User endpoints.

Authentication, the signed-in user's profile and address, and the
administrative user management routes. Failures are raised as
``UserServiceException`` subclasses and rendered by the application's
exception handler.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..account_service import account_service, parse_page_number
from ..dependencies import get_current_user, require_admin
from ..exceptions import UserServiceException
from ..metrics import track_admin_operation, track_login, track_register
from ..models import (
    AddressInput,
    AddressResponse,
    AdminUserResponse,
    AdminUserUpdate,
    MessageResponse,
    ProfileUpdate,
    UserDetail,
    UserListResponse,
    UserLogin,
    UserProfileResponse,
    UserRegister,
    UserSummary,
    address_row_to_model,
    user_row_to_model,
)
from ..rate_limiter import check_credentials_rate_limit
from ..security import clear_session_cookie, set_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


# ==================== AUTHENTICATION ====================


@router.post(
    "/login",
    response_model=UserSummary,
    summary="Authenticate user and set session cookie",
    dependencies=[Depends(check_credentials_rate_limit)],
)
async def login(credentials: UserLogin, response: Response):
    """
    Sign in with email and password.

    On success the session token is stored in an HTTP-only cookie.
    """
    try:
        user = await account_service.authenticate(credentials.email, credentials.password)
    except UserServiceException:
        track_login(False)
        raise

    track_login(True)
    set_session_cookie(response, str(user["id"]))
    return user_row_to_model(user, UserSummary)


@router.post(
    "",
    response_model=UserSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    dependencies=[Depends(check_credentials_rate_limit)],
)
async def register(user_data: UserRegister, response: Response):
    """Create an account and sign the new user in."""
    try:
        user = await account_service.register(
            name=user_data.name,
            email=user_data.email,
            password=user_data.password,
            phone=user_data.phone,
        )
    except UserServiceException:
        track_register(False)
        raise

    track_register(True)
    set_session_cookie(response, str(user["id"]))
    return user_row_to_model(user, UserSummary)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out and clear session cookie",
)
async def logout(
    response: Response,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    clear_session_cookie(response)
    logger.info(f"User logged out: {current_user['id']}")
    return MessageResponse(message="Logged out successfully")


# ==================== PROFILE ====================


@router.get(
    "/profile",
    response_model=UserProfileResponse,
    summary="Get current user's profile",
)
async def get_profile(current_user: Dict[str, Any] = Depends(get_current_user)):
    user = await account_service.get_profile(current_user["id"])
    return user_row_to_model(user, UserProfileResponse)


@router.put(
    "/profile",
    response_model=UserSummary,
    summary="Update current user's profile",
)
async def update_profile(
    profile_update: ProfileUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    """
    Update name, email, phone or password.

    Fields left empty keep their stored value.
    """
    user = await account_service.update_profile(
        current_user["id"], profile_update.model_dump()
    )
    return user_row_to_model(user, UserSummary)


# ==================== ADDRESS ====================


@router.post(
    "/address",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create current user's address",
)
async def create_address(
    address: AddressInput,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    row = await account_service.create_address(current_user["id"], address.model_dump())
    return address_row_to_model(row)


@router.put(
    "/address",
    response_model=AddressResponse,
    summary="Update current user's address",
)
async def update_address(
    address: AddressInput,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    row = await account_service.update_address(current_user["id"], address.model_dump())
    return address_row_to_model(row)


@router.get(
    "/address/{user_id}",
    response_model=AddressResponse,
    summary="Get a user's address",
)
async def get_address(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    row = await account_service.get_address(user_id)
    return address_row_to_model(row)


# ==================== ADMINISTRATION ====================


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users (admin)",
)
async def list_users(
    page_number: Optional[str] = Query(default=None, alias="pageNumber"),
    admin: Dict[str, Any] = Depends(require_admin),
):
    """
    List users newest first, one fixed-size page at a time.

    Args:
        page_number: One-based page; invalid values fall back to 1
    """
    result = await account_service.list_users(parse_page_number(page_number))
    return UserListResponse(
        users=[user_row_to_model(user, UserDetail) for user in result["users"]],
        total_users=result["total_users"],
        page=result["page"],
        pages=result["pages"],
    )


@router.get(
    "/{user_id}",
    response_model=UserDetail,
    summary="Get user by id (admin)",
)
async def get_user(user_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    user = await account_service.get_user(user_id)
    return user_row_to_model(user, UserDetail)


@router.put(
    "/{user_id}",
    response_model=AdminUserResponse,
    summary="Update user (admin)",
)
async def update_user(
    user_id: str,
    user_update: AdminUserUpdate,
    admin: Dict[str, Any] = Depends(require_admin),
):
    """
    Update a user's name, email and admin flag.

    The admin flag is always written; omitting ``isAdmin`` revokes it.
    """
    try:
        user = await account_service.update_user(
            user_id,
            name=user_update.name,
            email=user_update.email,
            is_admin=user_update.is_admin,
        )
    except UserServiceException:
        track_admin_operation("update", False)
        raise

    track_admin_operation("update", True)
    return user_row_to_model(user, AdminUserResponse)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user (admin)",
)
async def delete_user(user_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    """Delete a user. Administrator accounts cannot be deleted."""
    try:
        await account_service.delete_user(user_id)
    except UserServiceException:
        track_admin_operation("delete", False)
        raise

    track_admin_operation("delete", True)
    logger.info(f"Admin {admin['id']} deleted user {user_id}")
    return MessageResponse(message="User deleted successfully")
