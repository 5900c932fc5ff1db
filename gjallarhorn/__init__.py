"""
Gjallarhorn Backend Package.

FastAPI service that ingests test-execution reports and persists them to
PostgreSQL.

Subpackages:
    - api: FastAPI route handlers (ingress adapter)
    - core: Configuration, database bootstrap, context and dependencies
    - models: Pydantic schemas and enums
    - services: Entity store, quality-gate upserter, scenario tree writer
    - sql: Table declarations and DDL
"""

__version__ = "1.0.0"
