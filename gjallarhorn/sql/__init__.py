"""
SQL module for the Gjallarhorn backend.

Provides the table declarations consulted by the EntityStore and the DDL run
at startup to create missing tables.

Example usage:
    from gjallarhorn.sql import TABLES, SCHEMA_STATEMENTS

    spec = TABLES['measure']
    assert spec.has_column('metric')
"""

from gjallarhorn.sql.schema_queries import (
    TableSpec,
    TABLES,
    MEASURE_NATURAL_KEY,
    SCHEMA_STATEMENTS,
)

__all__ = [
    'TableSpec',
    'TABLES',
    'MEASURE_NATURAL_KEY',
    'SCHEMA_STATEMENTS',
]
