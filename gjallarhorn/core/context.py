"""
Process-wide application context.

AppContext bundles what every request handler needs (settings and the
connection pool). It is built once in the FastAPI lifespan, stored on
`app.state.context`, and handed to endpoints through the dependencies in
gjallarhorn/core/dependencies.py.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from asyncpg import Pool

from gjallarhorn.core.config import Settings
from gjallarhorn.core.database import close_pool, create_pool, sync_schema, verify_connection


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Settings plus the live asyncpg pool (None until opened)."""
    settings: Settings
    pool: Optional[Pool] = None

    @classmethod
    async def open(cls, settings: Settings) -> "AppContext":
        """
        Connect to the database and synchronize the schema.

        The pool is closed again if verification or synchronization fails, so
        a failed startup never leaks connections.

        Raises:
            asyncpg.PostgresError / OSError: Propagated unchanged; the caller
                treats them as fatal.
        """
        pool = await create_pool(settings)
        try:
            await verify_connection(pool)
            await sync_schema(pool)
        except BaseException:
            logger.error("Database bootstrap failed, closing pool")
            await pool.close()
            raise
        return cls(settings=settings, pool=pool)

    async def close(self) -> None:
        if self.pool is not None:
            await close_pool(self.pool)
            self.pool = None
