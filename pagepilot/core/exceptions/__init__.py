"""
Project exception system.

Usage:
    from pagepilot.core.exceptions import ProjectError, SubjectNotFoundError, exception_factory

    # Built-in types
    raise SubjectNotFoundError("Component not found", details={"component_id": "7"})

    # Add new type on demand
    QuotaError = exception_factory("QuotaError", code="QUOTA_ERROR", http_status=429)
    raise QuotaError("Too many edits", cause=original_error)
"""
from pagepilot.core.exceptions.base import ProjectError, exception_factory
from pagepilot.core.exceptions.errors import (
    ConfigurationError,
    ExternalServiceError,
    MissingIdentifierError,
    NoOpUpdateError,
    NotFoundError,
    StoreError,
    SubjectNotFoundError,
    UpdateCompileError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "exception_factory",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "SubjectNotFoundError",
    "MissingIdentifierError",
    "NoOpUpdateError",
    "UpdateCompileError",
    "ExternalServiceError",
    "StoreError",
]
