"""Service-level exceptions.

Every failure a service reports is a subclass of BackOfficeError so the
routers can translate them uniformly into HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single offending field, addressed by its JSON path."""

    field: str
    message: str


class BackOfficeError(Exception):
    """Base class for all service errors."""


class ValidationError(BackOfficeError):
    """Input is malformed or would violate a business invariant."""

    def __init__(self, errors: list[FieldError] | FieldError) -> None:
        if isinstance(errors, FieldError):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(
            "; ".join(f"{e.field}: {e.message}" for e in self.errors)
            or "Validation failed"
        )


class NotFoundError(BackOfficeError):
    """A referenced entity does not exist (or has been deleted)."""

    def __init__(self, entity: str, code: str) -> None:
        self.entity = entity
        self.code = code
        super().__init__(f"{entity} '{code}' not found")


class ConflictError(BackOfficeError):
    """An identifier is already taken."""


class StoreError(BackOfficeError):
    """The persistence layer failed; the operation may be retried."""
