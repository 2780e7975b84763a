"""Structured error helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(self.code, message, details)


class ValidationError(AppError):
    """Malformed or missing input; nothing was written."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """A referenced workflow, panel, availability entry or slot does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} {identifier} not found",
            {"entity": entity, "id": str(identifier)},
        )


class StateConflictError(AppError):
    """The workflow is not in the stage the action requires."""

    status_code = status.HTTP_409_CONFLICT
    code = "STATE_CONFLICT"


class SlotConflictError(AppError):
    """The target slot exists but is already booked."""

    status_code = status.HTTP_409_CONFLICT
    code = "SLOT_CONFLICT"


class PersistenceError(AppError):
    """Storage failure. Details are logged, never returned to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str = "The operation could not be saved"):
        super().__init__(message)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures in the same error shape."""
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=build_error_payload(ValidationError.code, "Request validation failed", details),
    )
