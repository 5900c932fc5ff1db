"""
Pytest Configuration and Shared Fixtures for Gjallarhorn Backend Tests.

This module provides fixtures and helpers for all backend tests, supporting:
- Async test execution with pytest-asyncio
- Mock asyncpg connections, transactions and pools for testing the
  EntityStore, UnitOfWork and database bootstrap without a real server
- An in-memory entity store with transactional snapshots and failure
  injection, used to check the behavioural properties of the ingestion
  services (row counts, links, full rollback)
- Sample payloads for the quality-gate and end-to-end endpoints

Dependency References:
- gjallarhorn/services/store.py: EntityStore / UnitOfWork contract mirrored
  by InMemoryEntityStore
- gjallarhorn/core/exceptions.py: StorageError raised by injected failures
"""

import copy
import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock, Mock
from uuid import uuid4

import pytest

from gjallarhorn.core.config import Settings
from gjallarhorn.core.exceptions import StorageError
from gjallarhorn.models.enums import UpsertMode, ValidationMode


# ============================================================
# ASYNCPG MOCK FIXTURES
# ============================================================

def make_mock_transaction() -> Mock:
    """asyncpg Transaction stand-in with awaitable start/commit/rollback."""
    transaction = MagicMock()
    transaction.start = AsyncMock(return_value=None)
    transaction.commit = AsyncMock(return_value=None)
    transaction.rollback = AsyncMock(return_value=None)
    transaction.__aenter__ = AsyncMock(return_value=transaction)
    transaction.__aexit__ = AsyncMock(return_value=False)
    return transaction


@pytest.fixture
def mock_transaction() -> Mock:
    """
    Mock asyncpg Transaction object.

    Returns:
        Mock: transaction with AsyncMock start(), commit() and rollback()
    """
    return make_mock_transaction()


@pytest.fixture
def mock_connection(mock_transaction: Mock) -> AsyncMock:
    """
    Mock asyncpg Connection.

    Methods Mocked:
        - conn.execute(query, *args): returns None
        - conn.fetch(query, *args): returns []
        - conn.fetchrow(query, *args): returns None
        - conn.fetchval(query, *args): returns None
        - conn.transaction(): returns the mock_transaction fixture (sync call,
          exactly like asyncpg)

    Usage:
        async def test_query(mock_connection):
            mock_connection.fetchrow.return_value = {'id': 1}
            row = await EntityStore(mock_connection).find_one('scenario', id=1)
    """
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)
    conn.transaction = Mock(return_value=mock_transaction)
    return conn


@pytest.fixture
def mock_db_pool(mock_connection: AsyncMock) -> MagicMock:
    """
    Create a mock asyncpg connection pool.

    pool.acquire() supports both forms used by the code base:
        - `async with pool.acquire() as conn` (database bootstrap)
        - `conn = await pool.acquire()` + `await pool.release(conn)`
          (request-scoped connections)

    Returns:
        MagicMock: Mocked asyncpg pool handing out mock_connection
    """
    pool = MagicMock()

    class _Acquire:
        def __await__(self):
            async def _conn():
                return mock_connection
            return _conn().__await__()

        async def __aenter__(self):
            return mock_connection

        async def __aexit__(self, exc_type, exc, tb):
            return False

    pool.acquire = Mock(side_effect=lambda *args, **kwargs: _Acquire())
    pool.release = AsyncMock(return_value=None)
    pool.close = AsyncMock(return_value=None)
    return pool


# ============================================================
# SETTINGS FIXTURE
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Settings isolated from the process environment and any .env file.

    Defaults: upsert_mode='all', validation_mode='passthrough',
    transaction_timeout=5 seconds.
    """
    return Settings(
        _env_file=None,
        db_host='localhost',
        db_port=5432,
        db_name='gjallarhorn_test',
        db_user='test',
        db_password='test',
        database_url=None,
        transaction_timeout=5.0,
        upsert_mode=UpsertMode.ALL,
        validation_mode=ValidationMode.PASSTHROUGH,
    )


# ============================================================
# IN-MEMORY ENTITY STORE
# ============================================================

# Column limits mirroring the VARCHAR sizes in gjallarhorn/sql/schema_queries.py
COLUMN_LIMITS: Dict[Tuple[str, str], int] = {
    ('project', 'name'): 80,
    ('measure', 'metric'): 80,
    ('measure', 'status'): 10,
    ('scenario', 'project'): 20,
    ('scenario', 'environment'): 20,
    ('scenario', 'description'): 4000,
    ('testcase', 'description'): 255,
    ('step', 'description'): 255,
    ('step', 'error_message'): 4000,
}

FailurePredicate = Callable[[str, str, Dict[str, Any]], bool]


class _InMemoryTransaction:
    """Snapshot on enter, restore on exception, keep on success."""

    def __init__(self, store: 'InMemoryEntityStore') -> None:
        self._store = store
        self._snapshot = None

    async def __aenter__(self) -> '_InMemoryTransaction':
        self._snapshot = copy.deepcopy(self._store.tables)
        self._store.begins += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self._store.commits += 1
        else:
            self._store.tables = self._snapshot
            self._store.rollbacks += 1
        return False


class InMemoryEntityStore:
    """
    Dict-backed stand-in for EntityStore.

    - Rows are plain dicts; uuid ids are kept as given, other tables get
      sequential integer ids (like BIGSERIAL)
    - VARCHAR limits from COLUMN_LIMITS raise StorageError, like PostgreSQL
    - `fail_on(operation, table, values)` injects a StorageError
    - transaction() restores the pre-transaction state on any exception
    - every write is recorded in `writes` as (operation, table)
    """

    def __init__(self, fail_on: Optional[FailurePredicate] = None) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [] for name in ('project', 'measure', 'scenario', 'testcase', 'step')
        }
        self.fail_on = fail_on
        self.writes: List[Tuple[str, str]] = []
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self._ids = itertools.count(1)

    def transaction(self, timeout: Optional[float] = None) -> _InMemoryTransaction:
        return _InMemoryTransaction(self)

    def _check(self, operation: str, table: str, values: Dict[str, Any]) -> None:
        for column, value in values.items():
            limit = COLUMN_LIMITS.get((table, column))
            if limit is not None and isinstance(value, str) and len(value) > limit:
                raise StorageError(f"value too long for type character varying({limit})")
        if self.fail_on is not None and self.fail_on(operation, table, values):
            raise StorageError(f"Injected failure on {operation} {table}")

    async def find_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        for row in self.tables[table]:
            if all(row.get(column) == value for column, value in filters.items()):
                return dict(row)
        return None

    async def create(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        self._check('create', table, values)
        row = dict(values)
        row.setdefault('id', next(self._ids))
        self.tables[table].append(row)
        self.writes.append(('create', table))
        return dict(row)

    async def update(self, table: str, key: Any, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check('update', table, values)
        for row in self.tables[table]:
            if row['id'] == key:
                row.update(values)
                self.writes.append(('update', table))
                return dict(row)
        return None

    async def upsert(self, table: str, values: Dict[str, Any], conflict) -> Tuple[Dict[str, Any], bool]:
        existing = await self.find_one(table, **{column: values[column] for column in conflict})
        if existing is None:
            return await self.create(table, values), True
        changes = {column: value for column, value in values.items() if column != 'id'}
        return await self.update(table, existing['id'], changes), False

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.tables[table]]

    def row_count(self) -> int:
        return sum(len(rows) for rows in self.tables.values())


@pytest.fixture
def memory_store() -> InMemoryEntityStore:
    """Empty in-memory entity store."""
    return InMemoryEntityStore()


@pytest.fixture
def alpha_project(memory_store: InMemoryEntityStore) -> Dict[str, Any]:
    """Seed project 'alpha' into memory_store and return its row."""
    project = {'id': uuid4(), 'name': 'alpha', 'image': None}
    memory_store.tables['project'].append(project)
    return dict(project)


# ============================================================
# SAMPLE PAYLOAD FIXTURES
# ============================================================

def coverage_report(actual: float = 85, project_name: str = 'alpha') -> Dict[str, Any]:
    """Quality-gate report with a single 'coverage' condition."""
    return {
        'projectName': project_name,
        'conditions': [
            {'metric': 'coverage', 'level': 'OK', 'warning': 80, 'error': 70, 'actual': actual}
        ],
    }


def login_flow_batch() -> List[Dict[str, Any]]:
    """One scenario, one test, two steps (second one failed)."""
    return [
        {
            'project': 'alpha',
            'environment': 'web',
            'description': 'login flow',
            'tests': [
                {
                    'description': 'valid login',
                    'steps': [
                        {'description': 'enter creds', 'status': 'passed'},
                        {'description': 'submit', 'status': 'failed', 'error_message': 'timeout'},
                    ],
                }
            ],
        }
    ]


def make_batch(shape: List[List[int]]) -> List[Dict[str, Any]]:
    """
    Build a scenario batch from a shape description.

    `shape[i][j]` is the number of steps of test j in scenario i, so
    [[2, 1], [0]] is two scenarios: the first with tests of 2 and 1 steps,
    the second with one test without steps.
    """
    batch = []
    for s, tests in enumerate(shape):
        batch.append({
            'project': 'alpha',
            'environment': 'android',
            'description': f'scenario {s}',
            'tests': [
                {
                    'description': f'test {s}.{t}',
                    'steps': [
                        {'description': f'step {s}.{t}.{k}', 'status': 'passed', 'duration': 10 * k}
                        for k in range(step_count)
                    ],
                }
                for t, step_count in enumerate(tests)
            ],
        })
    return batch


@pytest.fixture
def sample_report() -> Dict[str, Any]:
    return coverage_report()


@pytest.fixture
def sample_batch() -> List[Dict[str, Any]]:
    return login_flow_batch()


__all__ = [
    'InMemoryEntityStore',
    'COLUMN_LIMITS',
    'make_mock_transaction',
    'coverage_report',
    'login_flow_batch',
    'make_batch',
]
