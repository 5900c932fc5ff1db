"""
Ingestion exception hierarchy.

Services raise these types; the API routers catch IngestionError once and map
it to a 422 response, so callers never need to know about asyncpg errors.

Usage:
    from gjallarhorn.core.exceptions import NotFoundError, StorageError

    raise NotFoundError("Project name not found", resource="project", key="alpha")
"""

from typing import List, Optional

from gjallarhorn.models.schemas import ValidationIssue


class IngestionError(Exception):
    """Base class for every failure surfaced to the ingress adapter."""

    def detail(self):
        """Payload placed in the HTTP error body."""
        return str(self)


class ValidationError(IngestionError):
    """Raised when a payload is rejected by the configured validator.

    Args:
        message: Human-readable summary.
        errors: Field-level breakdown returned to the client.
    """

    def __init__(self, message: str, errors: Optional[List[ValidationIssue]] = None) -> None:
        self.errors = errors or []
        super().__init__(message)

    def detail(self):
        return {
            "message": str(self),
            "errors": [issue.model_dump() for issue in self.errors],
        }


class NotFoundError(IngestionError):
    """Raised when a referenced entity (a project, by name) does not exist."""

    def __init__(self, message: str, resource: Optional[str] = None, key: Optional[str] = None) -> None:
        self.resource = resource
        self.key = key
        super().__init__(message)


class StorageError(IngestionError):
    """Raised for connection, constraint, transaction or deadline failures.

    The underlying driver exception is always chained as __cause__.
    """
