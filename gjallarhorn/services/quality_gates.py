"""
Quality-Gate Upserter

Stores SonarQube quality-gate conditions as Measure rows of a project.

Pipeline for one report:
1. Validate the payload with the configured validator (passthrough by default)
2. Resolve the project by name; a missing project raises NotFoundError
3. Upsert one measure per condition keyed by (metric, project_id):
   - existing row: every field is overwritten, the id is kept -> 200
   - no row: a fresh UUID is generated and the row inserted -> 201

The upsert is a single INSERT ... ON CONFLICT statement backed by the unique
index on measure (metric, project_id), so two concurrent reports for the same
metric cannot both insert.

Modes (UPSERT_MODE):
- all: Every condition inside one transaction. 201 when any measure was
  created, otherwise 200. An empty condition list returns 200 without writes.
- first: Only the first condition, outside a transaction, returning its own
  status. Matches the historical service, which returned from inside the loop.
"""

import logging
from typing import Any, Optional
from uuid import uuid4

from gjallarhorn.core.exceptions import NotFoundError
from gjallarhorn.models.enums import UpsertMode
from gjallarhorn.models.schemas import QualityGateCondition, QualityGateReport
from gjallarhorn.services.store import EntityStore
from gjallarhorn.services.validation import Validator, ensure_valid, get_report_validator
from gjallarhorn.sql.schema_queries import MEASURE_NATURAL_KEY


logger = logging.getLogger(__name__)

STATUS_UPDATED: int = 200
STATUS_CREATED: int = 201


def measure_values(condition: QualityGateCondition, project_id: Any) -> dict:
    """
    Map a reported condition onto measure columns.

    A fresh id is always proposed; on conflict the stored id wins because the
    upsert never overwrites the primary key.
    """
    return {
        'id': uuid4(),
        'metric': condition.metric,
        'status': condition.level,
        'warningvalue': condition.warning,
        'errorvalue': condition.error,
        'actualvalue': condition.actual,
        'project_id': project_id,
    }


async def upsert_measure(
    store: EntityStore,
    project_id: Any,
    project_name: str,
    condition: QualityGateCondition,
) -> int:
    """
    Find-or-create the measure for one condition.

    Returns:
        201 if the measure was created, 200 if an existing one was updated.
    """
    row, created = await store.upsert(
        'measure',
        measure_values(condition, project_id),
        conflict=MEASURE_NATURAL_KEY,
    )
    if created:
        logger.info(f"Created metric {condition.metric} for project {project_name} (id={row['id']})")
        return STATUS_CREATED

    logger.info(f"Updated metric {condition.metric} of project {project_name} (id={row['id']})")
    return STATUS_UPDATED


async def upsert_quality_gates(
    store: EntityStore,
    payload: Any,
    mode: UpsertMode = UpsertMode.ALL,
    validator: Optional[Validator] = None,
) -> int:
    """
    Insert or update the metrics of a project.

    Args:
        store: Entity store bound to a connection.
        payload: Raw JSON body (or an already typed QualityGateReport).
        mode: 'all' or 'first', see module docstring.
        validator: Payload validator; defaults to the passthrough validator.

    Returns:
        HTTP status code: 201 if any measure was created, else 200.

    Raises:
        ValidationError: If the validator rejects the payload.
        NotFoundError: If no project has the reported name. Nothing is written.
        StorageError: If any storage operation fails.
    """
    validator = validator or get_report_validator()
    report: QualityGateReport = ensure_valid(validator(payload))

    project = await store.find_one('project', name=report.projectName)
    if project is None:
        logger.warning(f"Project name not found: {report.projectName!r}")
        raise NotFoundError("Project name not found!", resource='project', key=report.projectName)

    conditions = list(report.conditions)
    if not conditions:
        logger.info(f"No conditions reported for project {report.projectName}")
        return STATUS_UPDATED

    if UpsertMode(mode) == UpsertMode.FIRST:
        if len(conditions) > 1:
            logger.warning(
                f"Legacy upsert mode: ignoring {len(conditions) - 1} condition(s) "
                f"after '{conditions[0].metric}' for project {report.projectName}"
            )
        return await upsert_measure(store, project['id'], report.projectName, conditions[0])

    created = 0
    async with store.transaction():
        for condition in conditions:
            status = await upsert_measure(store, project['id'], report.projectName, condition)
            if status == STATUS_CREATED:
                created += 1

    logger.info(
        f"Stored {len(conditions)} metric(s) for project {report.projectName} "
        f"({created} created, {len(conditions) - created} updated)"
    )
    return STATUS_CREATED if created else STATUS_UPDATED
