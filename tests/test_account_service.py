"""
Tests for AccountService business logic.

Repositories are replaced by AsyncMocks; no database is involved.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from conftest import PASSWORD, make_address, make_user

from user_service.account_service import (
    AccountService,
    page_window,
    parse_page_number,
)
from user_service.exceptions import (
    AddressNotFoundError,
    AdminDeletionError,
    InvalidCredentialsError,
    InvalidUserDataError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from user_service.repositories import AddressRepository, UserRepository
from user_service.security import verify_password


@pytest.fixture
def users():
    return AsyncMock(spec=UserRepository)


@pytest.fixture
def addresses():
    return AsyncMock(spec=AddressRepository)


@pytest.fixture
def service(users, addresses):
    return AccountService(users, addresses, page_size=9)


class TestPagination:
    """Test page number parsing and window arithmetic."""

    @pytest.mark.parametrize(
        "value,expected",
        [(None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("1", 1), ("4", 4)],
    )
    def test_parse_page_number(self, value, expected):
        assert parse_page_number(value) == expected

    def test_page_window_first_page(self):
        assert page_window(1, 9) == (9, 0)

    def test_page_window_second_page(self):
        assert page_window(2, 9) == (9, 9)

    def test_page_window_later_page(self):
        assert page_window(5, 9) == (9, 36)


class TestAuthenticate:
    """Test credential verification."""

    @pytest.mark.asyncio
    async def test_authenticate_success(self, service, users):
        user = make_user()
        users.find_by_email.return_value = user

        result = await service.authenticate("jane@example.com", PASSWORD)

        assert result is user

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(self, service, users):
        users.find_by_email.return_value = make_user()

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await service.authenticate("jane@example.com", "wrong")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_authenticate_unknown_user(self, service, users):
        users.find_by_email.return_value = None

        with pytest.raises(InvalidCredentialsError):
            await service.authenticate("nobody@example.com", PASSWORD)


class TestRegister:
    """Test registration."""

    @pytest.mark.asyncio
    async def test_register_hashes_password(self, service, users):
        users.find_by_email.return_value = None
        users.create.return_value = make_user()

        await service.register("Jane Doe", "jane@example.com", "pw123456", phone="555")

        kwargs = users.create.call_args.kwargs
        assert kwargs["name"] == "Jane Doe"
        assert kwargs["phone"] == "555"
        assert verify_password("pw123456", kwargs["password_hash"])

    @pytest.mark.asyncio
    async def test_register_duplicate(self, service, users):
        users.find_by_email.return_value = make_user()

        with pytest.raises(UserAlreadyExistsError) as exc_info:
            await service.register("Jane", "jane@example.com", "pw123456")

        assert exc_info.value.status_code == 400
        users.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_create_returns_nothing(self, service, users):
        users.find_by_email.return_value = None
        users.create.return_value = None

        with pytest.raises(InvalidUserDataError):
            await service.register("Jane", "jane@example.com", "pw123456")

    @pytest.mark.asyncio
    async def test_register_rejects_password_over_72_bytes(self, service, users):
        users.find_by_email.return_value = None

        # 37 two-byte characters: short in characters, too long in bytes
        with pytest.raises(InvalidUserDataError) as exc_info:
            await service.register("Jane", "jane@example.com", "é" * 37)

        assert exc_info.value.status_code == 400
        users.create.assert_not_called()


class TestProfile:
    """Test profile reads and updates."""

    @pytest.mark.asyncio
    async def test_get_profile_missing(self, service, users):
        users.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.get_profile(uuid4())

    @pytest.mark.asyncio
    async def test_update_profile_skips_empty_values(self, service, users):
        user = make_user()
        users.find_by_id.return_value = user
        users.update.return_value = user

        await service.update_profile(
            user["id"], {"name": None, "email": "new@example.com", "phone": "", "password": None}
        )

        users.update.assert_awaited_once_with(user["id"], {"email": "new@example.com"})

    @pytest.mark.asyncio
    async def test_update_profile_rejects_long_password(self, service, users):
        users.find_by_id.return_value = make_user()

        with pytest.raises(InvalidUserDataError):
            await service.update_profile(uuid4(), {"password": "a" * 80})

        users.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_profile_missing_user(self, service, users):
        users.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.update_profile(uuid4(), {"name": "X"})

        users.update.assert_not_called()


class TestAddress:
    """Test address operations."""

    @pytest.mark.asyncio
    async def test_create_address_passes_all_fields(self, service, addresses):
        user_id = uuid4()
        addresses.create.return_value = make_address(user_id)

        await service.create_address(user_id, {"city": "Salmiya", "house": "7"})

        addresses.create.assert_awaited_once_with(
            user_id,
            {"province": None, "city": "Salmiya", "block": None, "street": None, "house": "7"},
        )

    @pytest.mark.asyncio
    async def test_update_address_missing(self, service, addresses):
        addresses.find_by_user.return_value = None

        with pytest.raises(AddressNotFoundError) as exc_info:
            await service.update_address(uuid4(), {"city": "Salmiya"})

        assert exc_info.value.status_code == 404
        addresses.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_address(self, service, addresses):
        user_id = uuid4()
        address = make_address(user_id)
        addresses.find_by_user.return_value = address

        assert await service.get_address(user_id) is address


class TestAdministration:
    """Test admin list/update/delete."""

    @pytest.mark.asyncio
    async def test_list_users_page_two(self, service, users):
        users.count.return_value = 10
        users.list_page.return_value = [make_user()]

        result = await service.list_users(page=2)

        users.list_page.assert_awaited_once_with(limit=9, offset=9)
        assert result["total_users"] == 10
        assert result["page"] == 2
        assert result["pages"] == 2
        assert len(result["users"]) == 1

    @pytest.mark.asyncio
    async def test_list_users_exact_multiple(self, service, users):
        users.count.return_value = 18
        users.list_page.return_value = []

        result = await service.list_users(page=1)

        assert result["pages"] == 2

    @pytest.mark.asyncio
    async def test_update_user_truthy_is_admin(self, service, users):
        user = make_user()
        users.find_by_id.return_value = user
        users.update.return_value = {**user, "is_admin": True}

        result = await service.update_user(user["id"], email="boss@example.com", is_admin=True)

        users.update.assert_awaited_once_with(
            user["id"], {"email": "boss@example.com", "is_admin": True}
        )
        assert result["is_admin"] is True

    @pytest.mark.asyncio
    async def test_delete_admin_refused(self, service, users):
        users.find_by_id.return_value = make_user(is_admin=True)

        with pytest.raises(AdminDeletionError) as exc_info:
            await service.delete_user(uuid4())

        assert exc_info.value.message == "Cannot delete admin user"
        users.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_regular_user(self, service, users):
        user = make_user()
        users.find_by_id.return_value = user

        await service.delete_user(str(user["id"]))

        users.delete.assert_awaited_once_with(user["id"])

    @pytest.mark.asyncio
    async def test_delete_missing_user(self, service, users):
        users.find_by_id.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.delete_user(uuid4())
