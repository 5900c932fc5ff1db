'''
Gjallarhorn Backend Test Suite

Test Modules:
-------------
- test_store.py: EntityStore SQL and UnitOfWork commit/rollback behaviour
- test_validation.py: Passthrough and schema validators
- test_quality_gates.py: Measure upsert (create 201 / update 200, not found, modes)
- test_e2e_runs.py: Scenario tree writes, full rollback, transaction deadline
- test_database.py: Settings, pool bootstrap, schema sync, AppContext
- test_api.py: HTTP contracts of both endpoints

Running Tests:
--------------
    pip install -e ".[test]"
    pytest
'''

__all__ = []
