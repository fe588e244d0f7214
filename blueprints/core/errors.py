# blueprints/core/errors.py
from __future__ import annotations
import logging

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from extensions import db

log = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "A server error occurred."


class ApiError(Exception):
    status = 500
    default_message = GENERIC_SERVER_ERROR

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status = 400
    default_message = "Invalid request."


class AuthenticationError(ApiError):
    status = 401
    default_message = "Authentication required."


class AuthorizationError(ApiError):
    status = 403
    default_message = "Permission denied."


class NotFoundError(ApiError):
    status = 404
    default_message = "Resource not found."


class ConflictError(ApiError):
    status = 409
    default_message = "Resource already exists."


class RateLimitedError(ApiError):
    status = 429
    default_message = "Too many requests. Please try again later."


class UnexpectedError(ApiError):
    status = 500


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _first_pydantic_message(ve: PydanticValidationError) -> str:
    errs = ve.errors()
    if not errs:
        return ValidationError.default_message
    e = errs[0]
    field = ".".join(str(p) for p in e.get("loc", ()) if p != "__root__")
    if e.get("type") == "missing":
        return f"Missing required field: {field}." if field else "Missing required field."
    msg = str(e.get("msg", "")).removeprefix("Value error, ")
    return f"{field}: {msg}" if field else msg


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        if e.status >= 500:
            log.error("request failed: %s", e.message)
        return error_response(e.message, e.status)

    @app.errorhandler(PydanticValidationError)
    def _validation_error(e: PydanticValidationError):
        return error_response(_first_pydantic_message(e), 400)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 429:
            return error_response(RateLimitedError.default_message, 429)
        if e.code == 404:
            return error_response(NotFoundError.default_message, 404)
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(SQLAlchemyError)
    def _store_error(e: SQLAlchemyError):
        db.session.rollback()
        log.exception("store failure")
        return error_response(GENERIC_SERVER_ERROR, 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        log.exception("unhandled error")
        return error_response(GENERIC_SERVER_ERROR, 500)
