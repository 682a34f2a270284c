"""
Error taxonomy shared by every service. The HTTP layer maps these to status codes.
"""
from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class LoanServiceError(Exception):
    """Base class for failures surfaced to callers."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LoanServiceError):
    """Referenced record (application, profile, document, notification) does not exist."""


class ValidationError(LoanServiceError):
    """Missing or invalid input for an operation."""


class IneligibleStateError(LoanServiceError):
    """Operation attempted from a state that forbids it."""


class AuthenticationError(LoanServiceError):
    """Credentials or token did not match."""


def validation_error_from(exc: PydanticValidationError, prefix: str = "") -> ValidationError:
    """Flatten a pydantic error into a single domain ValidationError."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        if prefix:
            loc = f"{prefix}.{loc}" if loc else prefix
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return ValidationError("; ".join(parts) or "Invalid input")
