"""
Package initialization file for backend models.

Re-exports the Pydantic schemas and enumerations so other modules can import
them from gjallarhorn.models directly.

Usage:
    from gjallarhorn.models import QualityGateReport, ScenarioInput, StepStatus
"""

from gjallarhorn.models.enums import (
    StepStatus,
    UpsertMode,
    ValidationMode,
)

from gjallarhorn.models.schemas import (
    # Quality gates
    QualityGateCondition,
    QualityGateReport,
    # End-to-end runs
    StepInput,
    ScenarioTestInput,
    ScenarioInput,
    # Results and errors
    ValidationIssue,
    TreeWriteResult,
)

__all__ = [
    'StepStatus',
    'UpsertMode',
    'ValidationMode',
    'QualityGateCondition',
    'QualityGateReport',
    'StepInput',
    'ScenarioTestInput',
    'ScenarioInput',
    'ValidationIssue',
    'TreeWriteResult',
]
