"""
FastAPI router module for end-to-end run ingestion.

Implements POST /test (mounted under /api/v1).

Request body: an array of scenarios
    [
        {
            "project": "alpha",
            "environment": "web",
            "description": "login flow",
            "tests": [
                {
                    "description": "valid login",
                    "steps": [
                        {"description": "enter creds", "status": "passed"},
                        {"description": "submit", "status": "failed", "error_message": "timeout"}
                    ]
                }
            ]
        }
    ]

Responses:
- 201: Batch committed; body carries scenario/test/step counts
- 422: Any failure; nothing from the batch is persisted

Repeated identical requests create duplicate trees.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from gjallarhorn.core.dependencies import EntityStoreDep, SettingsDep
from gjallarhorn.core.exceptions import IngestionError
from gjallarhorn.models.schemas import TreeWriteResult
from gjallarhorn.services.e2e_runs import save_entities
from gjallarhorn.services.validation import get_scenarios_validator


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/test", status_code=201, response_model=TreeWriteResult)
async def receive_e2e_runs(
    store: EntityStoreDep,
    settings: SettingsDep,
    payload: Any = Body(...),
) -> TreeWriteResult:
    """
    Persist a batch of scenario -> test -> step trees atomically.

    Raises:
        HTTPException 422: On ValidationError, StorageError (including the
            transaction deadline) or any unexpected failure. The transaction
            has been rolled back by then.
    """
    batch_size = len(payload) if isinstance(payload, list) else 0
    logger.info(f"Received request to store {batch_size} end-to-end scenario(s)")

    try:
        return await save_entities(
            store,
            payload,
            timeout=settings.transaction_timeout,
            validator=get_scenarios_validator(settings.validation_mode),
        )
    except IngestionError as e:
        raise HTTPException(status_code=422, detail=e.detail())
    except Exception as e:
        logger.error(f"Unexpected error storing end-to-end runs: {str(e)}", exc_info=True)
        raise HTTPException(status_code=422, detail=f"Failed to store end-to-end runs: {e}")
