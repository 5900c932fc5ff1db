"""
FastAPI router module for SonarQube quality-gate ingestion.

Implements POST /kvasir/sonarqube (mounted under /api/v1).

Request body:
    {
        "projectName": "alpha",
        "conditions": [
            {"metric": "coverage", "level": "OK", "warning": 80, "error": 70, "actual": 85}
        ]
    }

Responses:
- 201: At least one measure was created
- 200: Existing measure(s) updated
- 422: Validation failure, unknown project, or storage failure (body = detail)

Dependencies:
- gjallarhorn/core/dependencies.py: EntityStoreDep, SettingsDep
- gjallarhorn/services/quality_gates.py: upsert_quality_gates
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Response

from gjallarhorn.core.dependencies import EntityStoreDep, SettingsDep
from gjallarhorn.core.exceptions import IngestionError
from gjallarhorn.services.quality_gates import upsert_quality_gates
from gjallarhorn.services.validation import get_report_validator


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/kvasir/sonarqube",
    status_code=201,
    responses={
        200: {"description": "Measure(s) updated"},
        201: {"description": "Measure created"},
        422: {"description": "Invalid payload, unknown project or storage failure"},
    },
)
async def receive_sonarqube_metrics(
    store: EntityStoreDep,
    settings: SettingsDep,
    payload: Any = Body(...),
) -> Response:
    """
    Insert or update the quality-gate measures of a project.

    The body is handed to the configured validator untouched; with the default
    passthrough validator every well-formed JSON body is accepted and bad
    values are rejected by storage instead.

    Raises:
        HTTPException 422: On ValidationError, NotFoundError, StorageError or
            any unexpected failure.
    """
    project_name = payload.get('projectName') if isinstance(payload, dict) else None
    logger.info(f"Received request for SonarQube metrics of {project_name} project")

    try:
        status_code = await upsert_quality_gates(
            store,
            payload,
            mode=settings.upsert_mode,
            validator=get_report_validator(settings.validation_mode),
        )
    except IngestionError as e:
        logger.warning(f"SonarQube metrics rejected for project {project_name}: {e}")
        raise HTTPException(status_code=422, detail=e.detail())
    except Exception as e:
        logger.error(f"Unexpected error storing SonarQube metrics: {str(e)}", exc_info=True)
        raise HTTPException(status_code=422, detail=f"Failed to store quality gate metrics: {e}")

    return Response(status_code=status_code)
