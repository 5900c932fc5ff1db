"""
FastAPI dependency injection module for the Gjallarhorn backend.

Handlers never reach for module-level state. Everything flows from the
AppContext stored on `app.state.context` by the lifespan:

- get_context: the AppContext of the running application
- get_settings_dependency: settings held by the context
- get_db_session: a pooled asyncpg connection, released after the request
- get_entity_store: an EntityStore bound to that connection

Tests replace any of these through `app.dependency_overrides`, e.g.:

    app.dependency_overrides[get_entity_store] = lambda: fake_store
"""

from typing import Annotated, AsyncGenerator

from asyncpg import Connection
from fastapi import Depends, Request

from gjallarhorn.core.config import Settings
from gjallarhorn.core.context import AppContext
from gjallarhorn.core.exceptions import StorageError
from gjallarhorn.services.store import STORAGE_ERRORS, EntityStore


def get_context(request: Request) -> AppContext:
    """Return the AppContext built at startup."""
    return request.app.state.context


ContextDep = Annotated[AppContext, Depends(get_context)]


def get_settings_dependency(context: ContextDep) -> Settings:
    """Return the settings of the running application."""
    return context.settings


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


async def get_db_session(context: ContextDep) -> AsyncGenerator[Connection, None]:
    """
    Yield a connection from the pool for the duration of the request.

    The connection is returned to the pool when the endpoint completes,
    whether it succeeded or raised.

    Raises:
        StorageError: If no connection can be acquired.
    """
    if context.pool is None:
        raise StorageError("Database pool is not initialized")
    try:
        connection = await context.pool.acquire()
    except STORAGE_ERRORS as exc:
        raise StorageError(f"Unable to acquire a database connection: {exc}") from exc
    try:
        yield connection
    finally:
        await context.pool.release(connection)


DBSessionDep = Annotated[Connection, Depends(get_db_session)]


def get_entity_store(db: DBSessionDep) -> EntityStore:
    """Return an EntityStore bound to the request's connection."""
    return EntityStore(db)


EntityStoreDep = Annotated[EntityStore, Depends(get_entity_store)]
