"""
Async PostgreSQL pool bootstrap for the Gjallarhorn backend.

This module owns the database side of process startup: creating the asyncpg
connection pool, checking that the server answers, and creating any missing
tables. It holds no module-level state; the pool it returns is stored on the
AppContext (see gjallarhorn/core/context.py) and injected into handlers.

Startup sequence (run from the FastAPI lifespan):

    pool = await create_pool(settings)
    await verify_connection(pool)
    await sync_schema(pool)
    ...
    await close_pool(pool)

Any exception raised here is fatal: the lifespan re-raises it and uvicorn
exits without serving requests.
"""

import logging

import asyncpg
from asyncpg import Pool

from gjallarhorn.core.config import Settings
from gjallarhorn.sql.schema_queries import SCHEMA_STATEMENTS


logger = logging.getLogger(__name__)


async def create_pool(settings: Settings) -> Pool:
    """
    Create the asyncpg connection pool.

    The pool is configured with:
    - min_size / max_size from DB_POOL_MIN_SIZE / DB_POOL_MAX_SIZE
    - command_timeout from DB_COMMAND_TIMEOUT (seconds per statement)

    Args:
        settings: Application settings.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        asyncpg.InvalidPasswordError: If authentication fails.
        OSError: If the database host is unreachable.
    """
    logger.info(
        f"Initiating connection to the database {settings.db_name} "
        f"at {settings.db_host}:{settings.db_port}..."
    )
    return await asyncpg.create_pool(
        dsn=settings.dsn,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )


async def verify_connection(pool: Pool) -> None:
    """
    Run a trivial query to prove the pool can reach the server.

    Raises:
        asyncpg.PostgresError: If the query fails.
        OSError: If no connection can be opened.
    """
    async with pool.acquire() as conn:
        await conn.fetchval("SELECT 1")
    logger.info("Connection to the database has been established successfully!")


async def sync_schema(pool: Pool) -> None:
    """
    Create every missing table and index in a single transaction.

    Statements use IF NOT EXISTS, so running this on every startup is safe.
    Either all missing objects are created or none are.

    Raises:
        asyncpg.PostgresError: If any DDL statement fails.
    """
    logger.info("Initializing database synchronization...")
    async with pool.acquire() as conn:
        async with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
    logger.info(f"Database synchronized successfully ({len(SCHEMA_STATEMENTS)} statements)")


async def close_pool(pool: Pool) -> None:
    """
    Close the pool gracefully, waiting for acquired connections to be released.
    """
    await pool.close()
    logger.info("Database connection pool closed")
