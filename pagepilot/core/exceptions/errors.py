"""
Built-in exception types. Add new ones here or via exception_factory().
"""
from __future__ import annotations

from pagepilot.core.exceptions.base import ProjectError


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Request or input validation failed."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class MissingIdentifierError(ValidationError):
    """A client id or component id is required but was not supplied."""

    default_code = "MISSING_IDENTIFIER"

    def __init__(self, identifier: str, message: str | None = None, **kwargs) -> None:
        super().__init__(
            message or f"{identifier} is required",
            details={"identifier": identifier},
            **kwargs,
        )
        self.identifier = identifier


class NoOpUpdateError(ValidationError):
    """Nothing left to write after guarding and resolving an update."""

    default_code = "NO_OP_UPDATE"


class UpdateCompileError(ValidationError):
    """A canonical path cannot be expressed as a write instruction."""

    default_code = "UPDATE_COMPILE_ERROR"


class NotFoundError(ProjectError):
    """Requested resource not found."""

    default_code = "NOT_FOUND"
    default_http_status = 404


class SubjectNotFoundError(NotFoundError):
    """The component or design addressed by an operation does not exist."""

    default_code = "SUBJECT_NOT_FOUND"


class ExternalServiceError(ProjectError):
    """External service (LLM, DB) failed."""

    default_code = "EXTERNAL_SERVICE_ERROR"
    default_http_status = 502


class StoreError(ExternalServiceError):
    """Relational store operation failed (I/O, constraint, driver error)."""

    default_code = "STORE_ERROR"
