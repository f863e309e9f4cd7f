"""
Repositories for user and address records.

Thin asyncpg-backed data access objects. Rows are returned as plain
dictionaries keyed by column name; callers never see ``asyncpg.Record``.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

import asyncpg

from .database import DatabaseManager, db_manager
from .exceptions import ResourceNotFoundError, UserAlreadyExistsError
from .logging_config import get_logger

logger = get_logger(__name__)

USER_COLUMNS = "id, name, email, phone, is_admin, created_at, updated_at"
ADDRESS_COLUMNS = "id, user_id, province, city, block, street, house, created_at, updated_at"

USER_UPDATABLE = {"name", "email", "phone", "password_hash", "is_admin"}
ADDRESS_UPDATABLE = {"province", "city", "block", "street", "house"}


def parse_id(value: Any) -> UUID:
    """
    Convert a path or session identifier to a UUID.

    Raises:
        ResourceNotFoundError: If the value is not a valid UUID
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ResourceNotFoundError()


def _to_dict(row: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    return dict(row) if row is not None else None


def _build_set_clause(fields: Dict[str, Any], allowed: set) -> tuple:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")

    columns = list(fields)
    assignments = [f"{column} = ${index}" for index, column in enumerate(columns, start=2)]
    assignments.append("updated_at = NOW()")
    return ", ".join(assignments), [fields[column] for column in columns]


class UserRepository:
    """Data access for the ``users`` table."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Find a user by email, including the password hash."""
        row = await self.db.fetchrow(
            f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = $1",
            email.lower(),
        )
        return _to_dict(row)

    async def find_by_id(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """
        Find a user by id, without the password hash.

        Args:
            user_id: User UUID (string or UUID)

        Returns:
            User row or None
        """
        row = await self.db.fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            parse_id(user_id),
        )
        return _to_dict(row)

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        phone: Optional[str] = None,
        is_admin: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Insert a new user.

        Raises:
            UserAlreadyExistsError: If the email is taken
        """
        try:
            row = await self.db.fetchrow(
                f"""
                INSERT INTO users (name, email, phone, password_hash, is_admin)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {USER_COLUMNS}
                """,
                name,
                email.lower(),
                phone,
                password_hash,
                is_admin,
            )
        except asyncpg.UniqueViolationError:
            raise UserAlreadyExistsError()
        return _to_dict(row)

    async def update(self, user_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Persist changed columns of a user.

        Raises:
            UserAlreadyExistsError: If the new email belongs to another user
        """
        if "email" in fields and fields["email"]:
            fields = {**fields, "email": fields["email"].lower()}
        set_clause, values = _build_set_clause(fields, USER_UPDATABLE)

        try:
            row = await self.db.fetchrow(
                f"UPDATE users SET {set_clause} WHERE id = $1 RETURNING {USER_COLUMNS}",
                parse_id(user_id),
                *values,
            )
        except asyncpg.UniqueViolationError:
            raise UserAlreadyExistsError()
        return _to_dict(row)

    async def count(self) -> int:
        """Count all users."""
        return await self.db.fetchval("SELECT COUNT(*) FROM users")

    async def list_page(self, limit: int, offset: int) -> List[Dict[str, Any]]:
        """List users newest first, without password hashes."""
        rows = await self.db.fetch(
            f"""
            SELECT {USER_COLUMNS}
            FROM users
            ORDER BY created_at DESC
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
        )
        return [dict(row) for row in rows]

    async def delete(self, user_id: Any) -> bool:
        """Delete a user. Returns whether a row was removed."""
        result = await self.db.execute("DELETE FROM users WHERE id = $1", parse_id(user_id))
        return result == "DELETE 1"


class AddressRepository:
    """Data access for the ``addresses`` table."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    async def find_by_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """Find the address owned by a user."""
        row = await self.db.fetchrow(
            f"SELECT {ADDRESS_COLUMNS} FROM addresses WHERE user_id = $1 "
            "ORDER BY created_at LIMIT 1",
            parse_id(user_id),
        )
        return _to_dict(row)

    async def create(self, user_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an address for a user."""
        row = await self.db.fetchrow(
            f"""
            INSERT INTO addresses (user_id, province, city, block, street, house)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING {ADDRESS_COLUMNS}
            """,
            parse_id(user_id),
            fields.get("province"),
            fields.get("city"),
            fields.get("block"),
            fields.get("street"),
            fields.get("house"),
        )
        return _to_dict(row)

    async def update(self, address_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Persist changed columns of an address."""
        set_clause, values = _build_set_clause(fields, ADDRESS_UPDATABLE)
        row = await self.db.fetchrow(
            f"UPDATE addresses SET {set_clause} WHERE id = $1 RETURNING {ADDRESS_COLUMNS}",
            parse_id(address_id),
            *values,
        )
        return _to_dict(row)


user_repository = UserRepository(db_manager)
address_repository = AddressRepository(db_manager)
