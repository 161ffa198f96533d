"""
Base exception types for the project.

Subclass ProjectError or use exception_factory() to add new exception types
on demand. Every exception carries a machine-readable code, a suggested HTTP
status and an optional ``hint`` telling the user what to do next.
"""
from __future__ import annotations

import traceback
from typing import Any, Optional, Type


class ProjectError(Exception):
    """
    Base exception for all project errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable slug (defaults to class default_code).
        http_status: Suggested HTTP status for API responses (default 500).
        details: Optional dict for extra context (ids, rejected keys).
        hint: Optional next step shown to the user instead of the raw message.
        cause: Optional chained exception.
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        hint: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code
        self.http_status = (
            http_status if http_status is not None else self.default_http_status
        )
        self.details: dict[str, Any] = details or {}
        self.hint = hint
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, code={self.code!r}, "
            f"http_status={self.http_status})"
        )

    def __str__(self) -> str:
        return self.message

    @property
    def user_message(self) -> str:
        """Text safe to show to an end user."""
        return self.hint or self.message

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        """Serialize for logging or API responses.

        The chained cause is only included on request; it may carry driver
        details that must not reach the user.
        """
        out: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "http_status": self.http_status,
        }
        if self.details:
            out["details"] = self.details
        if self.hint:
            out["hint"] = self.hint
        if include_cause and self.cause is not None:
            out["cause"] = str(self.cause)
            out["cause_traceback"] = traceback.format_exception(
                type(self.cause), self.cause, self.cause.__traceback__
            )
        return out


def exception_factory(
    name: str,
    *,
    code: Optional[str] = None,
    http_status: int = 500,
    base: Type[ProjectError] = ProjectError,
) -> Type[ProjectError]:
    """
    Create a new exception class on demand.

    Example:
        QuotaError = exception_factory("QuotaError", code="QUOTA_ERROR", http_status=429)
        raise QuotaError("Too many edits", details={"client_id": "42"})
    """
    code = code or name.upper().replace(" ", "_")
    return type(
        name,
        (base,),
        {
            "default_code": code,
            "default_http_status": http_status,
        },
    )
