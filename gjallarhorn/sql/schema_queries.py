"""
Table declarations and DDL for the Gjallarhorn store.

Two bounded contexts share one PostgreSQL database:

Quality gates:
    product, project, productproject (schema only), measure

End-to-end runs:
    scenario -> testcase -> step

TABLES is the single source of truth for which tables and columns the
EntityStore may touch; identifiers outside it are rejected before any SQL is
built. SCHEMA_STATEMENTS creates whatever is missing at startup. It is not a
migration tool: existing tables are never altered.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class TableSpec:
    """Columns of a table as seen by the EntityStore."""
    name: str
    primary_key: str
    columns: Tuple[str, ...]
    timestamps: bool = True

    def has_column(self, column: str) -> bool:
        if column == self.primary_key or column in self.columns:
            return True
        return self.timestamps and column in ('created_at', 'updated_at')


TABLES: Dict[str, TableSpec] = {
    'product': TableSpec(
        name='product',
        primary_key='id',
        columns=('name',),
    ),
    'project': TableSpec(
        name='project',
        primary_key='id',
        columns=('name', 'image'),
    ),
    'productproject': TableSpec(
        name='productproject',
        primary_key='project_id',
        columns=('product_id',),
    ),
    'measure': TableSpec(
        name='measure',
        primary_key='id',
        columns=(
            'metric',
            'status',
            'warningvalue',
            'errorvalue',
            'actualvalue',
            'project_id',
        ),
    ),
    'scenario': TableSpec(
        name='scenario',
        primary_key='id',
        columns=('project', 'environment', 'description', 'executed_at'),
    ),
    'testcase': TableSpec(
        name='testcase',
        primary_key='id',
        columns=('description', 'scenario_id'),
    ),
    'step': TableSpec(
        name='step',
        primary_key='id',
        columns=('description', 'status', 'duration', 'error_message', 'testcase_id'),
    ),
}

# Natural key of a measure; backs the ON CONFLICT target of the upsert
MEASURE_NATURAL_KEY: Tuple[str, ...] = ('metric', 'project_id')


# =============================================================================
# DDL - Quality Gates
# =============================================================================

CREATE_PRODUCT = """
    CREATE TABLE IF NOT EXISTS product (
        id UUID PRIMARY KEY,
        name VARCHAR(40) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_PROJECT = """
    CREATE TABLE IF NOT EXISTS project (
        id UUID PRIMARY KEY,
        name VARCHAR(80) NOT NULL,
        image VARCHAR(80),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_PRODUCTPROJECT = """
    CREATE TABLE IF NOT EXISTS productproject (
        project_id UUID NOT NULL REFERENCES project (id) ON DELETE CASCADE,
        product_id UUID NOT NULL REFERENCES product (id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (project_id, product_id)
    )
"""

CREATE_MEASURE = """
    CREATE TABLE IF NOT EXISTS measure (
        id UUID PRIMARY KEY,
        metric VARCHAR(80) NOT NULL,
        status VARCHAR(10) NOT NULL,
        warningvalue DOUBLE PRECISION,
        errorvalue DOUBLE PRECISION,
        actualvalue DOUBLE PRECISION,
        project_id UUID REFERENCES project (id) ON DELETE SET NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_MEASURE_NATURAL_KEY = """
    CREATE UNIQUE INDEX IF NOT EXISTS measure_metric_project_id_key
        ON measure (metric, project_id)
"""

# =============================================================================
# DDL - End-to-End Runs
# =============================================================================

CREATE_SCENARIO = """
    CREATE TABLE IF NOT EXISTS scenario (
        id BIGSERIAL PRIMARY KEY,
        project VARCHAR(20),
        environment VARCHAR(20) NOT NULL,
        description VARCHAR(4000) NOT NULL,
        executed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_TESTCASE = """
    CREATE TABLE IF NOT EXISTS testcase (
        id BIGSERIAL PRIMARY KEY,
        description VARCHAR(255) NOT NULL,
        scenario_id BIGINT REFERENCES scenario (id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_STEP = """
    CREATE TABLE IF NOT EXISTS step (
        id BIGSERIAL PRIMARY KEY,
        description VARCHAR(255) NOT NULL,
        status VARCHAR(7) CHECK (status IN ('passed', 'failed', 'skipped')),
        duration BIGINT,
        error_message VARCHAR(4000),
        testcase_id BIGINT REFERENCES testcase (id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

# Dependency order: referenced tables first
SCHEMA_STATEMENTS: List[str] = [
    CREATE_PRODUCT,
    CREATE_PROJECT,
    CREATE_PRODUCTPROJECT,
    CREATE_MEASURE,
    CREATE_MEASURE_NATURAL_KEY,
    CREATE_SCENARIO,
    CREATE_TESTCASE,
    CREATE_STEP,
]
