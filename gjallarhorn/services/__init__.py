"""
Business logic services for the Gjallarhorn backend.

- store: EntityStore and UnitOfWork over an asyncpg connection
- validation: Pluggable payload validators
- quality_gates: Quality-Gate Upserter (measure find-or-create per metric)
- e2e_runs: Scenario Tree Writer (all-or-nothing scenario/test/step batches)
"""

from gjallarhorn.services.store import EntityStore, UnitOfWork
from gjallarhorn.services.validation import (
    ValidationResult,
    Validator,
    get_report_validator,
    get_scenarios_validator,
)
from gjallarhorn.services.quality_gates import upsert_quality_gates
from gjallarhorn.services.e2e_runs import save_entities

__all__ = [
    'EntityStore',
    'UnitOfWork',
    'ValidationResult',
    'Validator',
    'get_report_validator',
    'get_scenarios_validator',
    'upsert_quality_gates',
    'save_entities',
]
