"""
Pydantic request/response models for the Gjallarhorn backend.

This module describes the two ingestion payloads accepted over HTTP:

- Quality-gate reports (SonarQube conditions for one project)
- End-to-end run trees (scenarios -> tests -> steps)

and the small result/error models returned by the ingestion services.
Field length limits mirror the storage columns declared in
gjallarhorn/sql/schema_queries.py, so schema validation rejects what the
database would reject anyway.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gjallarhorn.models.enums import StepStatus


# =============================================================================
# Quality Gates
# =============================================================================


class QualityGateCondition(BaseModel):
    """
    One evaluated quality-gate condition.

    `level` is stored as the measure status; the three thresholds map to
    warningvalue / errorvalue / actualvalue.
    """
    metric: str = Field(
        ...,
        min_length=1,
        max_length=80,
        description="Metric key, e.g. 'coverage'"
    )
    level: str = Field(
        ...,
        max_length=10,
        description="Gate status reported for the metric (OK, WARN, ERROR)"
    )
    warning: Optional[float] = Field(
        default=None,
        description="Warning threshold"
    )
    error: Optional[float] = Field(
        default=None,
        description="Error threshold"
    )
    actual: Optional[float] = Field(
        default=None,
        description="Measured value"
    )


class QualityGateReport(BaseModel):
    """Quality-gate report for a single project."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "projectName": "alpha",
                "conditions": [
                    {"metric": "coverage", "level": "OK", "warning": 80, "error": 70, "actual": 85}
                ]
            }
        }
    )

    projectName: str = Field(
        ...,
        min_length=1,
        max_length=80,
        description="Name of an existing project"
    )
    conditions: List[QualityGateCondition] = Field(
        default_factory=list,
        description="Conditions to upsert, in order"
    )


# =============================================================================
# End-to-End Runs
# =============================================================================


class StepInput(BaseModel):
    """A single executed step of an end-to-end test."""
    description: str = Field(..., max_length=255)
    status: StepStatus = Field(..., description="passed, failed or skipped")
    duration: Optional[int] = Field(
        default=None,
        ge=0,
        description="Step duration in milliseconds"
    )
    error_message: Optional[str] = Field(default=None, max_length=4000)


class ScenarioTestInput(BaseModel):
    """A test inside a scenario, owning its steps."""
    description: str = Field(..., max_length=255)
    steps: List[StepInput] = Field(default_factory=list)


class ScenarioInput(BaseModel):
    """
    One end-to-end scenario run.

    The whole scenario -> tests -> steps tree is written in one transaction.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
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
        }
    )

    project: Optional[str] = Field(default=None, max_length=20)
    environment: str = Field(..., max_length=20)
    description: str = Field(..., max_length=4000)
    executed_at: Optional[datetime] = Field(
        default=None,
        description="Execution time; storage defaults to now() when omitted"
    )
    tests: List[ScenarioTestInput] = Field(default_factory=list)


# =============================================================================
# Results and errors
# =============================================================================


class ValidationIssue(BaseModel):
    """
    Validation error detail.

    Used for reporting payload validation problems back to the client.
    """
    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Error message")


class TreeWriteResult(BaseModel):
    """Row counts of a committed scenario tree batch."""
    scenarios: int = Field(default=0, ge=0)
    tests: int = Field(default=0, ge=0)
    steps: int = Field(default=0, ge=0)

    @property
    def total_rows(self) -> int:
        return self.scenarios + self.tests + self.steps
