"""
Scenario Tree Writer

Persists end-to-end test runs: each scenario owns tests, each test owns
steps. A batch is one logical test run, so it is written all-or-nothing:

1. Begin a transaction (UnitOfWork)
2. For each scenario, in order: create the scenario row
3. For each test of the scenario, in order: create the testcase row; for each
   step, in order: create the step row and link it to the test; after the
   steps, link the test to the scenario
4. Commit when every create/link succeeded
5. On any failure: roll back everything and re-raise

The whole unit of work runs under a deadline (TRANSACTION_TIMEOUT). When the
deadline passes the task is cancelled, the transaction rolled back and a
StorageError raised. Repeated identical batches create duplicate trees; there
is no deduplication.
"""

import asyncio
import logging
from typing import Any, List, Optional

from gjallarhorn.core.exceptions import IngestionError, StorageError
from gjallarhorn.models.schemas import ScenarioInput, ScenarioTestInput, StepInput, TreeWriteResult
from gjallarhorn.services.store import EntityStore
from gjallarhorn.services.validation import Validator, ensure_valid, get_scenarios_validator


logger = logging.getLogger(__name__)


def _enum_value(value: Any) -> Any:
    return getattr(value, 'value', value)


def scenario_values(scenario: ScenarioInput) -> dict:
    values = {
        'project': scenario.project,
        'environment': scenario.environment,
        'description': scenario.description,
    }
    # Storage fills executed_at with NOW() when omitted
    if scenario.executed_at is not None:
        values['executed_at'] = scenario.executed_at
    return values


def step_values(step: StepInput) -> dict:
    return {
        'description': step.description,
        'status': _enum_value(step.status),
        'duration': step.duration,
        'error_message': step.error_message,
    }


async def _write_test(store: EntityStore, scenario_id: Any, test: ScenarioTestInput, result: TreeWriteResult) -> None:
    test_row = await store.create('testcase', {'description': test.description})
    result.tests += 1

    for step in test.steps:
        step_row = await store.create('step', step_values(step))
        await store.update('step', step_row['id'], {'testcase_id': test_row['id']})
        result.steps += 1

    await store.update('testcase', test_row['id'], {'scenario_id': scenario_id})


async def _write_tree(
    store: EntityStore,
    scenarios: List[ScenarioInput],
    timeout: Optional[float],
) -> TreeWriteResult:
    result = TreeWriteResult()
    async with store.transaction(timeout=timeout):
        for scenario in scenarios:
            scenario_row = await store.create('scenario', scenario_values(scenario))
            result.scenarios += 1
            for test in scenario.tests:
                await _write_test(store, scenario_row['id'], test, result)
    return result


async def save_entities(
    store: EntityStore,
    payload: Any,
    timeout: Optional[float] = None,
    validator: Optional[Validator] = None,
) -> TreeWriteResult:
    """
    Write a batch of scenario trees in one transaction.

    Args:
        store: Entity store bound to a connection.
        payload: Raw JSON body (list of scenarios) or typed ScenarioInput list.
        timeout: Deadline in seconds for the whole transaction; None disables it.
        validator: Payload validator; defaults to the passthrough validator.

    Returns:
        TreeWriteResult with the number of scenarios, tests and steps written.

    Raises:
        ValidationError: If the validator rejects the payload.
        StorageError: If any create/link fails, the commit fails, or the
            deadline passes. Nothing from the batch is persisted.
    """
    validator = validator or get_scenarios_validator()
    scenarios: List[ScenarioInput] = ensure_valid(validator(payload))

    try:
        if timeout:
            result = await asyncio.wait_for(_write_tree(store, scenarios, timeout), timeout)
        else:
            result = await _write_tree(store, scenarios, None)
    except asyncio.TimeoutError as exc:
        logger.error(f"Error to save values on database: transaction exceeded {timeout}s")
        raise StorageError(f"Transaction exceeded its {timeout}s deadline and was rolled back") from exc
    except IngestionError as exc:
        logger.error(f"Error to save values on database: {exc}")
        raise

    logger.info(
        f"Saved {result.scenarios} scenario(s), {result.tests} test(s) "
        f"and {result.steps} step(s)"
    )
    return result
