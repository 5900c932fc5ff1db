"""
Entity Store: find / create / update / upsert and unit-of-work primitives.

This module is the only place that builds SQL for the ingestion services. It
wraps one asyncpg connection and exposes table-level operations over the
tables declared in gjallarhorn/sql/schema_queries.py:

- find_one(table, **filters): first matching row or None
- create(table, values): INSERT ... RETURNING *
- update(table, key, values): UPDATE by primary key, bumps updated_at
- upsert(table, values, conflict): atomic INSERT ... ON CONFLICT DO UPDATE
- transaction(timeout): UnitOfWork scoped to the same connection

Table and column names are checked against TABLES before SQL is built; values
always travel as $n parameters. Driver failures surface as StorageError with
the asyncpg exception chained.

Usage:
    store = EntityStore(conn)
    async with store.transaction(timeout=30):
        scenario = await store.create('scenario', {'environment': 'web', ...})
        test = await store.create('testcase', {'description': 'valid login'})
        await store.update('testcase', test['id'], {'scenario_id': scenario['id']})
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import asyncpg
from asyncpg import Connection, Record

from gjallarhorn.core.exceptions import StorageError
from gjallarhorn.sql.schema_queries import TABLES, TableSpec


logger = logging.getLogger(__name__)

# Driver-level failures translated into StorageError (command_timeout raises asyncio.TimeoutError)
STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


# =============================================================================
# Unit of Work
# =============================================================================


class UnitOfWork:
    """
    One database transaction used as an async context manager.

    Entering starts the transaction (and, when a timeout is given, sets a
    transaction-local statement_timeout). Leaving normally commits; leaving
    through any exception, including task cancellation, rolls back and lets
    the exception continue. A failed rollback is logged and raised as
    StorageError chained to the rollback failure.
    """

    def __init__(self, connection: Connection, timeout: Optional[float] = None) -> None:
        self._connection = connection
        self._timeout = timeout
        self._transaction = None

    async def __aenter__(self) -> "UnitOfWork":
        self._transaction = self._connection.transaction()
        try:
            await self._transaction.start()
        except STORAGE_ERRORS as exc:
            raise StorageError(f"Unable to begin transaction: {exc}") from exc

        if self._timeout:
            try:
                # SET does not accept bind parameters
                await self._connection.execute(
                    f"SET LOCAL statement_timeout = {int(self._timeout * 1000)}"
                )
            except BaseException as exc:
                await self._rollback(exc)
                if isinstance(exc, STORAGE_ERRORS):
                    raise StorageError(f"Unable to set transaction deadline: {exc}") from exc
                raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            await self._commit()
        else:
            logger.error(f"Rolling back transaction after {exc_type.__name__}: {exc}")
            await self._rollback(exc)
        return False

    async def _commit(self) -> None:
        try:
            await self._transaction.commit()
        except STORAGE_ERRORS as exc:
            # PostgreSQL aborts the transaction itself when COMMIT fails
            logger.error(f"Commit failed, transaction aborted by the server: {exc}")
            raise StorageError(f"Transaction commit failed: {exc}") from exc

    async def _rollback(self, cause: BaseException) -> None:
        try:
            await self._transaction.rollback()
        except Exception as rollback_exc:
            logger.exception(
                f"Rollback failed after {type(cause).__name__}: {cause}"
            )
            raise StorageError(f"Transaction rollback failed: {rollback_exc}") from rollback_exc


# =============================================================================
# Entity Store
# =============================================================================


class EntityStore:
    """Table-level persistence over a single asyncpg connection."""

    def __init__(self, connection: Connection, tables: Mapping[str, TableSpec] = TABLES) -> None:
        self._connection = connection
        self._tables = tables

    def transaction(self, timeout: Optional[float] = None) -> UnitOfWork:
        """Open a unit of work on this store's connection."""
        return UnitOfWork(self._connection, timeout=timeout)

    # -------------------------------------------------------------------------
    # Identifier checks
    # -------------------------------------------------------------------------

    def _table(self, table: str) -> TableSpec:
        spec = self._tables.get(table)
        if spec is None:
            raise ValueError(f"Unknown table '{table}'")
        return spec

    @staticmethod
    def _columns(spec: TableSpec, columns) -> List[str]:
        names = list(columns)
        unknown = [name for name in names if not spec.has_column(name)]
        if unknown:
            raise ValueError(f"Unknown column(s) {unknown} for table '{spec.name}'")
        return names

    async def _run(self, method: str, query: str, *args: Any) -> Any:
        try:
            return await getattr(self._connection, method)(query, *args)
        except STORAGE_ERRORS as exc:
            raise StorageError(f"{type(exc).__name__}: {exc}") from exc

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def find_one(self, table: str, **filters: Any) -> Optional[Record]:
        """
        Return the first row matching every filter, or None.

        Ordering by primary key makes "first" deterministic when the filter is
        not unique (project names, for instance).
        """
        spec = self._table(table)
        columns = self._columns(spec, filters)

        clauses = []
        args: List[Any] = []
        for column in columns:
            value = filters[column]
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                args.append(value)
                clauses.append(f"{column} = ${len(args)}")
        where = " AND ".join(clauses) if clauses else "TRUE"

        query = f"SELECT * FROM {spec.name} WHERE {where} ORDER BY {spec.primary_key} LIMIT 1"
        return await self._run('fetchrow', query, *args)

    async def create(self, table: str, values: Mapping[str, Any]) -> Record:
        """Insert one row and return it as stored (generated ids included)."""
        spec = self._table(table)
        columns = self._columns(spec, values)
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))

        query = (
            f"INSERT INTO {spec.name} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        return await self._run('fetchrow', query, *[values[c] for c in columns])

    async def update(self, table: str, key: Any, values: Mapping[str, Any]) -> Optional[Record]:
        """Overwrite the given columns of the row with primary key `key`."""
        spec = self._table(table)
        columns = self._columns(spec, values)
        if not columns:
            raise ValueError("update() needs at least one column")

        assignments = [f"{column} = ${i}" for i, column in enumerate(columns, start=1)]
        if spec.timestamps and 'updated_at' not in columns:
            assignments.append("updated_at = NOW()")

        query = (
            f"UPDATE {spec.name} SET {', '.join(assignments)} "
            f"WHERE {spec.primary_key} = ${len(columns) + 1} RETURNING *"
        )
        return await self._run('fetchrow', query, *[values[c] for c in columns], key)

    async def upsert(
        self,
        table: str,
        values: Mapping[str, Any],
        conflict: Sequence[str],
    ) -> Tuple[Record, bool]:
        """
        Insert a row or, when `conflict` columns already match a row, update it.

        Runs as a single INSERT ... ON CONFLICT statement, so concurrent upserts
        on the same natural key cannot both insert. The primary key of an
        existing row is never overwritten.

        Returns:
            (row, created): the stored row and whether it was newly inserted.
        """
        spec = self._table(table)
        columns = self._columns(spec, values)
        target = self._columns(spec, conflict)
        missing = [column for column in target if column not in values]
        if missing:
            raise ValueError(f"Conflict column(s) {missing} missing from values")

        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        updates = [
            f"{column} = EXCLUDED.{column}"
            for column in columns
            if column not in target and column != spec.primary_key
        ]
        if spec.timestamps:
            updates.append("updated_at = NOW()")

        # xmax is 0 only for tuples created by this statement's INSERT branch
        query = (
            f"INSERT INTO {spec.name} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT ({', '.join(target)}) DO UPDATE SET {', '.join(updates)} "
            f"RETURNING *, (xmax = 0) AS inserted"
        )
        row = await self._run('fetchrow', query, *[values[c] for c in columns])
        return row, bool(row['inserted'])
