"""Translate service errors into HTTP responses."""
from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, status

from backoffice.api.schemas.common import FieldErrorRead, ValidationErrorResponse
from backoffice.core.exceptions import (
    BackOfficeError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


def raise_http_error(exc: BackOfficeError, action: str) -> NoReturn:
    """Raise the HTTPException matching ``exc``.

    Store failures get a generic message; their details stay in the log.
    """
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=ValidationErrorResponse(
                message="Validation failed",
                errors=[
                    FieldErrorRead(field=e.field, message=e.message)
                    for e in exc.errors
                ],
            ).model_dump(by_alias=True),
        ) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    ) from exc
