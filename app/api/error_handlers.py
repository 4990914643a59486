"""
app/api/error_handlers.py

Renders AnalyticsError as JSON `{"detail": {code, message, suggestion}}`
with the status mapped from its kind. Request validation failures and
unhandled exceptions are rendered in the same shape.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.errors import AnalyticsError, internal_error, invalid_argument

logger = logging.getLogger(__name__)


def handle_analytics_error(request: Request, exc: AnalyticsError) -> JSONResponse:
    logger.info(
        "Request failed path=%s kind=%s code=%s",
        request.url.path,
        exc.kind,
        exc.code,
    )
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.to_dict()})


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error.get("loc", ())[1:]) for error in exc.errors()})
    error = invalid_argument(
        "MISSING_PARAMETERS",
        f"Invalid or missing request fields: {', '.join(f for f in fields if f) or 'body'}.",
        "Check the request body against the endpoint's documented fields.",
    )
    return handle_analytics_error(request, error)


def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error path=%s", request.url.path)
    error = internal_error(
        "UNEXPECTED_ERROR",
        "An unexpected error occurred.",
        "Retry the request; contact support if it keeps failing.",
    )
    return JSONResponse(status_code=error.http_status, content={"detail": error.to_dict()})


def register_error_handlers(application: FastAPI) -> None:
    application.add_exception_handler(AnalyticsError, handle_analytics_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(Exception, handle_unexpected_error)
