"""
Custom exception hierarchy for the productivity coach API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class AppException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotAuthenticatedError(AppException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "NOT_AUTHENTICATED"

    def __init__(self):
        super().__init__(message="Not authenticated.")


class InvalidCredentialsError(AppException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__(message="Invalid credentials.")


class UsernameTakenError(AppException):
    http_status = status.HTTP_409_CONFLICT
    code = "USERNAME_TAKEN"

    def __init__(self, username: str):
        super().__init__(
            message="Username already taken.",
            details={"username": username},
        )


class EmailTakenError(AppException):
    http_status = status.HTTP_409_CONFLICT
    code = "EMAIL_TAKEN"

    def __init__(self, email: str):
        super().__init__(
            message="Email already in use.",
            details={"email": email},
        )


class EntryNotFoundError(AppException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        super().__init__(
            message=f"Entry {entry_id} not found.",
            details={"entry_id": entry_id},
        )


class InvalidDateRangeError(AppException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_DATE_RANGE"

    def __init__(self, start: date, end: date):
        super().__init__(
            message=f"Range start {start} is after range end {end}.",
            details={"start": str(start), "end": str(end)},
        )


class GenerationError(AppException):
    """The external text-generation service failed or returned garbage."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "GENERATION_FAILED"

    def __init__(self, message: str = "Text generation failed."):
        super().__init__(message=message)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
