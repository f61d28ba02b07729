"""
aaraa_erp/errors.py

Domain exceptions and JSON error rendering.

Blueprints and services raise these; register_error_handlers() turns them into
{"error": message} responses with the exception's status code. Nothing here retries:
recovery is always user-initiated.
"""

from __future__ import annotations

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .extensions import db

GENERIC_FAILURE_MESSAGE = "Unexpected failure. Please try again."


class ERPError(Exception):
    """Base class for errors reported to the client as-is."""

    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ERPError):
    """Missing or malformed required input. Reported inline, never propagated past the form."""

    status_code = 400


class AuthenticationError(ERPError):
    status_code = 401


class PermissionDenied(ERPError):
    status_code = 403


class NotFound(ERPError):
    status_code = 404


class InvalidTransition(ERPError):
    """Status change not allowed from the current status."""

    status_code = 409


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def register_error_handlers(app: Flask) -> None:
    """Wire JSON error responses for the API surface."""

    @app.errorhandler(ERPError)
    def _handle_erp_error(exc: ERPError):
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        if not _wants_json():
            return exc
        return jsonify({"error": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return _handle_http_exception(exc)
        db.session.rollback()
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": GENERIC_FAILURE_MESSAGE}), 500
