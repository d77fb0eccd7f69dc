from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from utils.exceptions import (
    DomainError,
    DuplicateEntityError,
    EntityNotFoundError,
    InternalError,
    InvalidEntityStateError,
    UnauthorizedError,
)

# most specific first; DomainError is the fallback for the family
DOMAIN_STATUS = (
    (UnauthorizedError, 401),
    (EntityNotFoundError, 404),
    (InvalidEntityStateError, 400),
    (DuplicateEntityError, 409),
    (DomainError, 400),
)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status, "path": request.path}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def status_for(err: DomainError) -> int:
    for cls, status in DOMAIN_STATUS:
        if isinstance(err, cls):
            return status
    return 400


def register_error_handlers(app):
    # Domain taxonomy raised by the services
    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        status = status_for(err)
        if current_app and current_app.debug:
            logging.info("Domain error %s: %s", err.error_code, err.message)
        return error_response(err.error_code, err.message, status)

    @app.errorhandler(InternalError)
    def handle_internal_error(err: InternalError):
        logging.exception("Internal error", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logging.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(HTTP_ERROR_CODES.get(status, "HTTP_ERROR"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
