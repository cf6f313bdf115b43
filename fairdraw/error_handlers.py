"""Centralized error handlers."""

from __future__ import annotations

import logging

from flask import Flask
from marshmallow import ValidationError as MarshmallowValidationError
from werkzeug.exceptions import HTTPException

from fairdraw.errors import AppError, InvalidInputError
from fairdraw.utils.responses import fail

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            logger.error("Request failed code=%s", exc.code, exc_info=exc)
        return fail(exc.code, exc.message, exc.status_code, exc.details)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        # exc.messages is a dict of field -> list[str]
        wrapped = InvalidInputError(details=exc.messages)
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(getattr(exc, "code", 500) or 500)
        if status == 404:
            return fail("not_found", "Not found", 404)

        return fail(
            "http_error",
            getattr(exc, "description", "HTTP error"),
            status,
            details={"name": getattr(exc, "name", "HTTPException")},
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception")
        return fail("internal_error", "Internal server error", 500)
