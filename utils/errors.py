import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None, **extra):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.extra = {k: v for k, v in extra.items() if v is not None}

    def to_response(self):
        body = {"success": False, "error": self.message}
        body.update(self.extra)
        return jsonify(body), self.status_code


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class RateLimited(ApiError):
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, retry_after: int, message=None):
        super().__init__(message, retryAfter=retry_after)
        self.retry_after = retry_after

    def to_response(self):
        resp, status = super().to_response()
        resp.headers["Retry-After"] = str(self.retry_after)
        return resp, status


class UpstreamError(ApiError):
    """Payment processor failure; keeps the processor's status, type and code."""

    default_message = "Payment processor error"

    def __init__(self, message=None, status_code=502, type=None, code=None):
        super().__init__(message, type=type, code=code)
        self.status_code = status_code


class InternalError(ApiError):
    status_code = 500


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(exc):
        if exc.status_code >= 500:
            logger.error("request_failed", extra={"error": exc.message, "status_code": exc.status_code})
        return exc.to_response()

    @app.errorhandler(404)
    def _not_found(_exc):
        return jsonify(success=False, error="Not found"), 404

    @app.errorhandler(405)
    def _method_not_allowed(_exc):
        return jsonify(success=False, error="Method not allowed"), 405

    @app.errorhandler(Exception)
    def _unhandled(exc):
        if isinstance(exc, HTTPException):
            return jsonify(success=False, error=exc.description), exc.code
        logger.exception("unhandled_error")
        return jsonify(success=False, error="Internal server error"), 500
