"""
Database connection management for User Service.

Provides async PostgreSQL connection pooling using asyncpg and the schema
for the users and addresses tables.
"""

from typing import Optional

import asyncpg
from asyncpg import Pool

from .config import settings
from .logging_config import get_logger

logger = get_logger(__name__)


SCHEMA = """
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    phone TEXT,
    password_hash TEXT NOT NULL,
    is_admin BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_users_created_at ON users (created_at DESC);

CREATE TABLE IF NOT EXISTS addresses (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    province TEXT,
    city TEXT,
    block TEXT,
    street TEXT,
    house TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_addresses_user_id ON addresses (user_id);
"""


class DatabaseManager:
    """
    Manages PostgreSQL database connections with connection pooling.

    Attributes:
        pool: asyncpg connection pool
    """

    def __init__(self) -> None:
        """Initialize database manager."""
        self.pool: Optional[Pool] = None

    async def connect(self) -> None:
        """
        Create database connection pool.

        Creates an async connection pool to PostgreSQL with configurable
        pool size.
        """
        if self.pool is not None:
            return

        logger.info("Connecting to database...")
        try:
            self.pool = await asyncpg.create_pool(
                settings.DATABASE_URL,
                min_size=settings.DATABASE_POOL_MIN_SIZE,
                max_size=settings.DATABASE_POOL_SIZE,
                command_timeout=60,
            )
            logger.info(
                "Database connection pool created",
                extra={
                    "extra_fields": {
                        "pool_min_size": settings.DATABASE_POOL_MIN_SIZE,
                        "pool_max_size": settings.DATABASE_POOL_SIZE,
                    }
                },
            )
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection pool closed")

    async def create_schema(self) -> None:
        """Create the users and addresses tables if they do not exist."""
        await self.execute(SCHEMA)
        logger.info("Database schema ensured")

    async def _get_pool(self) -> Pool:
        if not self.pool:
            await self.connect()
        return self.pool

    async def execute(self, query: str, *args) -> str:
        """
        Execute a query without returning results.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            Status string from execution
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args) -> list:
        """
        Execute a query and fetch all results.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            List of records
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        """
        Execute a query and fetch one result.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            Single record or None
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args):
        """
        Execute a query and fetch a single value.

        Args:
            query: SQL query string
            *args: Query parameters

        Returns:
            Single value from first column of first row
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval(query, *args)


# Global database manager instance
db_manager = DatabaseManager()
