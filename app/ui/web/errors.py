"""
API errors — error codes, status mapping and Flask error handlers.

Every error response has the shape ``{"code": "<ErrorCode>"}``. Domain
errors are translated here and logged with their details; clients only
ever see the code.
"""

from __future__ import annotations

import logging
from enum import Enum

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from app.core.errors import (
    BusinessRuleViolation,
    DomainError,
    ExternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    NOT_FOUND = "NotFound"
    VALIDATION_ERROR = "ValidationError"
    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    INVALID_TOKEN = "InvalidToken"
    TOKEN_NOT_FOUND = "TokenNotFound"
    INTERNAL_SERVER_ERROR = "InternalServerError"
    DATABASE_ERROR = "DatabaseError"
    UNPROCESSABLE_ENTITY = "UnprocessableEntity"


_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNPROCESSABLE_ENTITY: 422,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.TOKEN_NOT_FOUND: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}


class ApiError(Exception):
    """Raised by route handlers to short-circuit with an error code."""

    def __init__(self, code: ErrorCode) -> None:
        super().__init__(code.value)
        self.code = code

    @property
    def status(self) -> int:
        return _STATUS[self.code]


def code_for(error: DomainError) -> ErrorCode:
    """Map a domain error to its API error code, logging the details."""
    if isinstance(error, NotFoundError):
        logger.error(
            "Resource not found: type=%s id=%s", error.resource_type, error.resource_id
        )
        return ErrorCode.NOT_FOUND
    if isinstance(error, ValidationError):
        logger.error("Validation error: field=%s message=%s", error.field, error.message)
        return ErrorCode.VALIDATION_ERROR
    if isinstance(error, BusinessRuleViolation):
        logger.error("Business rule violation: rule=%s message=%s", error.rule, error.message)
        return ErrorCode.BAD_REQUEST
    if isinstance(error, ExternalError):
        logger.error("External system error: %s", error.detail)
        return ErrorCode.DATABASE_ERROR if error.is_database else ErrorCode.INTERNAL_SERVER_ERROR
    if isinstance(error, UnauthorizedError):
        logger.error("Unauthorized access attempt: %s", error.message)
        return ErrorCode.UNAUTHORIZED
    logger.error("Unhandled domain error: %s", error)
    return ErrorCode.INTERNAL_SERVER_ERROR


def error_response(code: ErrorCode):  # type: ignore[no-untyped-def]
    return jsonify({"code": code.value}), _STATUS[code]


def register_error_handlers(app: Flask) -> None:
    """Install JSON error handlers on the app."""

    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):  # type: ignore[no-untyped-def]
        return error_response(e.code)

    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):  # type: ignore[no-untyped-def]
        return error_response(code_for(e))

    @app.errorhandler(404)
    def _not_found(e: HTTPException):  # type: ignore[no-untyped-def]
        return error_response(ErrorCode.NOT_FOUND)

    @app.errorhandler(405)
    def _method_not_allowed(e: HTTPException):  # type: ignore[no-untyped-def]
        return jsonify({"code": ErrorCode.BAD_REQUEST.value}), 405

    @app.errorhandler(500)
    def _internal(e: HTTPException):  # type: ignore[no-untyped-def]
        logger.exception("Unhandled error while serving request")
        return error_response(ErrorCode.INTERNAL_SERVER_ERROR)
