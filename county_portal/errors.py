"""Structured error helpers for API responses."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        self.details = details
        self.payload = build_error_payload(self.code, message, details)


class ValidationFailed(AppError):
    """Malformed or missing fields that passed schema parsing."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class AccessDenied(AppError):
    """Authenticated, but not allowed to touch the target county or resource."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "access_denied"


class Conflict(AppError):
    """Duplicate value for a unique field (county name/code, username/email)."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "conflict"


class UploadError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "upload_error"


class AuthenticationFailed(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationFailed) else None
    return JSONResponse(status_code=exc.status_code, content=exc.payload, headers=headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=build_error_payload("internal_error", "Server error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
