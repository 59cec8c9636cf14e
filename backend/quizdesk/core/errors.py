"""Exception handlers rendering the common error envelope.

Every error response has the shape::

    {"error_code": ..., "message": ..., "details": ..., "request_id": ...}
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from quizdesk.common.request_id import get_request_id
from quizdesk.core.app_exceptions import AppError
from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger

logger = get_logger(__name__)

# Codes for errors raised by the framework itself (unknown route, bad method)
_FRAMEWORK_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Any | None = None
    request_id: str | None = None


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        request_id=get_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query failed schema validation (422)."""
    details = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "issue": error.get("msg", "Validation error"),
            "type": error.get("type", "validation_error"),
        }
        for error in exc.errors()
    ]
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Invalid request data",
        details,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_429_TOO_MANY_REQUESTS and isinstance(exc.details, dict):
        retry_after = exc.details.get("retry_after_seconds")
        if retry_after:
            headers = {"Retry-After": str(retry_after)}
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised HTTP errors (unknown route, wrong method and the like)."""
    if isinstance(exc.detail, dict):
        details = dict(exc.detail)
        message = details.pop("message", "An error occurred")
    else:
        details = None
        message = str(exc.detail)
    return error_response(
        request,
        exc.status_code,
        _FRAMEWORK_CODES.get(exc.status_code, "HTTP_ERROR"),
        message,
        details,
        getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unhandled becomes INTERNAL_ERROR; details are hidden in prod."""
    logger.error(
        "unhandled_exception",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
        exc_info=exc,
    )
    if settings.ENV == "prod":
        message, details = "An internal server error occurred", None
    else:
        message, details = str(exc), {"type": type(exc).__name__}
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message, details
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
