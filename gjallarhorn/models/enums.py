"""
Enumeration definitions for the Gjallarhorn backend.

All enums inherit from both `str` and `Enum` so they serialize cleanly in
Pydantic models and can be read straight from environment variables.
"""

from enum import Enum


class StepStatus(str, Enum):
    """
    Outcome of a single executed end-to-end step.

    Values: ['passed', 'failed', 'skipped']
    """
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class UpsertMode(str, Enum):
    """
    How many conditions of a quality-gate report are processed.

    - all: Every condition, inside one transaction. The response is 201 when
      any measure was created, otherwise 200.
    - first: Only the first condition, without a transaction. This is the
      behaviour of the historical service and is kept for clients relying on it.
    """
    ALL = "all"
    FIRST = "first"


class ValidationMode(str, Enum):
    """
    Validator applied to incoming payloads before they reach the core.

    - passthrough: Always valid; the payload is coerced leniently.
    - schema: Full Pydantic validation; violations are reported as 422.
    """
    PASSTHROUGH = "passthrough"
    SCHEMA = "schema"
