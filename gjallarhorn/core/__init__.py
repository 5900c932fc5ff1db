"""
Core infrastructure package for the Gjallarhorn backend.

Provides:
- Configuration management via pydantic-settings (config)
- The ingestion exception hierarchy (exceptions)
- asyncpg pool bootstrap and schema synchronization (database)
- The per-process AppContext (context)
- FastAPI dependency injection utilities (dependencies)

The dependencies module is imported directly by the routers
(gjallarhorn.core.dependencies) rather than re-exported here, since it
depends on the services package, which in turn imports core.exceptions.

Usage:
    from gjallarhorn.core import get_settings, AppContext, StorageError
"""

from gjallarhorn.core.config import Settings, get_settings
from gjallarhorn.core.exceptions import (
    IngestionError,
    ValidationError,
    NotFoundError,
    StorageError,
)
from gjallarhorn.core.database import create_pool, verify_connection, sync_schema, close_pool
from gjallarhorn.core.context import AppContext

__all__ = [
    'Settings',
    'get_settings',
    'IngestionError',
    'ValidationError',
    'NotFoundError',
    'StorageError',
    'create_pool',
    'verify_connection',
    'sync_schema',
    'close_pool',
    'AppContext',
]
