"""
Account service.

Business logic for authentication, profile and address management, and
user administration. Every operation reads or writes a single record through
the repositories and raises a ``UserServiceException`` subclass on failure.
"""

import math
from typing import Any, Dict, Optional

from .config import settings
from .exceptions import (
    AddressNotFoundError,
    AdminDeletionError,
    InvalidCredentialsError,
    InvalidUserDataError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .logging_config import get_logger
from .repositories import (
    AddressRepository,
    UserRepository,
    address_repository,
    user_repository,
)
from .security import hash_password, password_fits, verify_password

logger = get_logger(__name__)

ADDRESS_FIELDS = ("province", "city", "block", "street", "house")


def _hash_new_password(password: str) -> str:
    if not password_fits(password):
        logger.warning("Rejected password longer than bcrypt accepts")
        raise InvalidUserDataError()
    return hash_password(password)


def parse_page_number(value: Optional[str]) -> int:
    """
    Interpret the ``pageNumber`` query parameter.

    Anything that is not a positive integer falls back to the first page.
    """
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page > 0 else 1


def page_window(page: int, page_size: int) -> tuple:
    """Return ``(limit, offset)`` for a one-based page number."""
    return page_size, page_size * (page - 1)


def _truthy_fields(values: Dict[str, Any], names: tuple) -> Dict[str, Any]:
    return {name: values[name] for name in names if values.get(name)}


class AccountService:
    """
    Service class for account operations.

    Attributes:
        users: Repository for user records
        addresses: Repository for address records
        page_size: Number of users per admin listing page
    """

    def __init__(
        self,
        users: UserRepository,
        addresses: AddressRepository,
        page_size: int = settings.USERS_PAGE_SIZE,
    ) -> None:
        self.users = users
        self.addresses = addresses
        self.page_size = page_size

    # ==================== AUTHENTICATION ====================

    async def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and return the user.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        logger.info(f"User sign in attempt: {email}")
        user = await self.users.find_by_email(email)

        if not user or not verify_password(password, user["password_hash"]):
            logger.warning(f"Sign in failed: {email}")
            raise InvalidCredentialsError()

        logger.info(f"User signed in successfully: {email}")
        return user

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a new user.

        Raises:
            UserAlreadyExistsError: If the email is already registered
            InvalidUserDataError: If the password is too long or the record
                could not be created
        """
        logger.info(f"Attempting to register user: {email}")

        if await self.users.find_by_email(email):
            logger.warning(f"Registration failed - email already exists: {email}")
            raise UserAlreadyExistsError()

        user = await self.users.create(
            name=name,
            email=email,
            password_hash=_hash_new_password(password),
            phone=phone,
        )
        if not user:
            raise InvalidUserDataError()

        logger.info(f"User created successfully: {email} (id: {user['id']})")
        return user

    # ==================== PROFILE ====================

    async def get_profile(self, user_id: Any) -> Dict[str, Any]:
        """Fetch the signed-in user's record."""
        user = await self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    async def update_profile(self, user_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrite profile fields that were given a value.

        Args:
            user_id: Signed-in user
            changes: Mapping with optional ``name``, ``email``, ``phone`` and ``password``

        Returns:
            Updated user
        """
        if not await self.users.find_by_id(user_id):
            raise UserNotFoundError()

        fields = _truthy_fields(changes, ("name", "email", "phone"))
        if changes.get("password"):
            fields["password_hash"] = _hash_new_password(changes["password"])

        updated = await self.users.update(user_id, fields)
        if not updated:
            raise UserNotFoundError()

        logger.info(
            "User profile updated",
            extra={"extra_fields": {"user_id": str(user_id), "fields": sorted(fields)}},
        )
        return updated

    # ==================== ADDRESS ====================

    async def create_address(self, user_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        """Create an address owned by the user."""
        address = await self.addresses.create(
            user_id, {name: values.get(name) for name in ADDRESS_FIELDS}
        )
        logger.info(f"Address created for user {user_id}")
        return address

    async def get_address(self, user_id: Any) -> Dict[str, Any]:
        """Look up the address owned by a user."""
        address = await self.addresses.find_by_user(user_id)
        if not address:
            raise AddressNotFoundError()
        return address

    async def update_address(self, user_id: Any, values: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite address fields that were given a value."""
        address = await self.addresses.find_by_user(user_id)
        if not address:
            raise AddressNotFoundError()

        updated = await self.addresses.update(
            address["id"], _truthy_fields(values, ADDRESS_FIELDS)
        )
        if not updated:
            raise AddressNotFoundError()
        return updated

    # ==================== ADMINISTRATION ====================

    async def list_users(self, page: int = 1) -> Dict[str, Any]:
        """
        List one page of users, newest first.

        Returns:
            Dictionary with ``users``, ``total_users``, ``page`` and ``pages``
        """
        limit, offset = page_window(page, self.page_size)
        total_users = await self.users.count()
        users = await self.users.list_page(limit=limit, offset=offset)

        return {
            "users": users,
            "total_users": total_users,
            "page": page,
            "pages": math.ceil(total_users / self.page_size),
        }

    async def get_user(self, user_id: Any) -> Dict[str, Any]:
        """Fetch any user by id."""
        user = await self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    async def update_user(
        self,
        user_id: Any,
        name: Optional[str] = None,
        email: Optional[str] = None,
        is_admin: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Administrative update.

        ``is_admin`` is always written: leaving it out revokes admin rights.
        """
        if not await self.users.find_by_id(user_id):
            raise UserNotFoundError()

        fields = _truthy_fields({"name": name, "email": email}, ("name", "email"))
        fields["is_admin"] = bool(is_admin)

        updated = await self.users.update(user_id, fields)
        if not updated:
            raise UserNotFoundError()

        logger.info(
            "User updated by admin",
            extra={"extra_fields": {"user_id": str(user_id), "is_admin": fields["is_admin"]}},
        )
        return updated

    async def delete_user(self, user_id: Any) -> None:
        """
        Delete a user.

        Raises:
            UserNotFoundError: If the user does not exist
            AdminDeletionError: If the user is an administrator
        """
        user = await self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        if user["is_admin"]:
            logger.warning(f"Refused to delete admin user {user_id}")
            raise AdminDeletionError()

        await self.users.delete(user["id"])
        logger.info(f"User deleted: {user_id}")


# Global account service instance
account_service = AccountService(user_repository, address_repository)
