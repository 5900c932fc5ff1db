"""
Pluggable payload validation.

A validator is any callable taking the raw JSON body and returning a
ValidationResult (valid flag, typed value, list of issues). The ingestion
services call the validator they are given and never inspect raw payloads
themselves, so stricter rules can be swapped in without touching the upsert
or tree-writing logic.

Two families are provided:

- passthrough: Always valid. The payload is shaped into the typed models with
  model_construct, without checking types, lengths or enums. Bad data is left
  for the database to reject. This is what the service has historically done.
- schema: Full Pydantic validation. Violations come back as ValidationIssue
  entries (dotted field path + message).

Usage:
    validator = get_report_validator(ValidationMode.SCHEMA)
    result = validator(payload)
    if not result.is_valid:
        ...
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gjallarhorn.core.exceptions import ValidationError
from gjallarhorn.models.enums import ValidationMode
from gjallarhorn.models.schemas import (
    QualityGateCondition,
    QualityGateReport,
    ScenarioInput,
    ScenarioTestInput,
    StepInput,
    ValidationIssue,
)


T = TypeVar('T')
M = TypeVar('M', bound=BaseModel)


@dataclass
class ValidationResult(Generic[T]):
    """Outcome of running a validator over a raw payload."""
    is_valid: bool
    value: Optional[T] = None
    errors: List[ValidationIssue] = field(default_factory=list)


Validator = Callable[[Any], ValidationResult]


def ensure_valid(result: ValidationResult[T]) -> T:
    """Return the typed value, or raise ValidationError with the issues."""
    if not result.is_valid:
        raise ValidationError("Invalid JSON structure!", result.errors)
    return result.value


# =============================================================================
# Schema validators
# =============================================================================


def _issues(exc: PydanticValidationError) -> List[ValidationIssue]:
    return [
        ValidationIssue(
            field=".".join(str(part) for part in error['loc']) or '<root>',
            message=error['msg'],
        )
        for error in exc.errors()
    ]


def schema_validator(target: Any) -> Validator:
    """Build a validator enforcing the Pydantic schema of `target`."""
    adapter = TypeAdapter(target)

    def validate(payload: Any) -> ValidationResult:
        try:
            return ValidationResult(is_valid=True, value=adapter.validate_python(payload))
        except PydanticValidationError as exc:
            return ValidationResult(is_valid=False, errors=_issues(exc))

    return validate


# =============================================================================
# Passthrough validators
# =============================================================================


def _construct(model: Type[M], data: Any) -> M:
    """model_construct that tolerates non-dict input and missing required fields."""
    if isinstance(data, model):
        return data
    data = data if isinstance(data, dict) else {}
    values: Dict[str, Any] = {name: data[name] for name in model.model_fields if name in data}
    for name, info in model.model_fields.items():
        if name not in values and info.is_required():
            values[name] = None
    return model.model_construct(**values)


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _lenient_report(payload: Any) -> QualityGateReport:
    report = _construct(QualityGateReport, payload)
    report.conditions = [
        _construct(QualityGateCondition, condition)
        for condition in _as_list(report.conditions)
    ]
    return report


_TIMESTAMP = TypeAdapter(Optional[datetime])


def _timestamp(value: Any) -> Any:
    """Parse ISO-8601 strings from JSON; unparseable values are left for storage to reject."""
    try:
        return _TIMESTAMP.validate_python(value)
    except PydanticValidationError:
        return value


def _lenient_scenarios(payload: Any) -> List[ScenarioInput]:
    scenarios = []
    for raw_scenario in _as_list(payload):
        scenario = _construct(ScenarioInput, raw_scenario)
        scenario.executed_at = _timestamp(scenario.executed_at)
        tests = []
        for raw_test in _as_list(scenario.tests):
            test = _construct(ScenarioTestInput, raw_test)
            test.steps = [_construct(StepInput, raw_step) for raw_step in _as_list(test.steps)]
            tests.append(test)
        scenario.tests = tests
        scenarios.append(scenario)
    return scenarios


def passthrough_validator(builder: Callable[[Any], T]) -> Validator:
    """Build a validator that always reports valid and shapes the payload with `builder`."""

    def validate(payload: Any) -> ValidationResult:
        return ValidationResult(is_valid=True, value=builder(payload))

    return validate


# =============================================================================
# Lookup by mode
# =============================================================================

REPORT_VALIDATORS: Dict[ValidationMode, Validator] = {
    ValidationMode.PASSTHROUGH: passthrough_validator(_lenient_report),
    ValidationMode.SCHEMA: schema_validator(QualityGateReport),
}

SCENARIO_VALIDATORS: Dict[ValidationMode, Validator] = {
    ValidationMode.PASSTHROUGH: passthrough_validator(_lenient_scenarios),
    ValidationMode.SCHEMA: schema_validator(List[ScenarioInput]),
}


def get_report_validator(mode: ValidationMode = ValidationMode.PASSTHROUGH) -> Validator:
    """Validator for quality-gate reports."""
    return REPORT_VALIDATORS[ValidationMode(mode)]


def get_scenarios_validator(mode: ValidationMode = ValidationMode.PASSTHROUGH) -> Validator:
    """Validator for end-to-end scenario batches."""
    return SCENARIO_VALIDATORS[ValidationMode(mode)]
