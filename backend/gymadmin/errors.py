# Overview: Access-core error taxonomy and the Flask handlers that render it.

"""
Every rejection produced by the access core is an AccessError subclass.

Each error carries:
- kind: stable machine-readable code (also the "error" field in JSON)
- status_code: HTTP status used by the error handler
- message: human-readable text, safe to show to the caller
- details: extra response fields (camelCase, as the frontend expects)
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .time_utils import to_utc_z


class AccessError(Exception):
    kind = "AccessError"
    status_code = 500
    default_message = "Access check failed"

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict:
        payload = {
            "status": "error",
            "error": self.kind,
            "message": self.message,
        }
        for key, value in self.details.items():
            if isinstance(value, datetime):
                value = to_utc_z(value)
            payload[key] = value
        return payload


class Unauthenticated(AccessError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class MigrationRequired(AccessError):
    kind = "MigrationRequired"
    status_code = 409
    default_message = "PIN must be reset by a manager before it can be used"


class InvalidPinFormat(AccessError):
    kind = "InvalidPinFormat"
    status_code = 400
    default_message = "PIN must be exactly 4 digits"


class InvalidPin(AccessError):
    kind = "InvalidPin"
    status_code = 401
    default_message = "Invalid PIN"


class TooManyAttempts(AccessError):
    kind = "TooManyAttempts"
    status_code = 429
    default_message = "Too many PIN attempts. Please wait before trying again."


class PermissionDenied(AccessError):
    kind = "PermissionDenied"
    status_code = 403
    default_message = "Insufficient permissions"


class BranchAccessDenied(AccessError):
    kind = "BranchAccessDenied"
    status_code = 403
    default_message = "You can only access your assigned branch"

    def __init__(self, assigned_branch, requested_branch, message: str | None = None):
        super().__init__(
            message,
            assignedBranch=assigned_branch,
            requestedBranch=requested_branch,
        )
        self.assigned_branch = assigned_branch
        self.requested_branch = requested_branch


class ResourceNotFound(AccessError):
    kind = "ResourceNotFound"
    status_code = 404
    default_message = "Resource not found"


class StorageUnavailable(AccessError):
    kind = "StorageUnavailable"
    status_code = 503
    default_message = "Credential store is temporarily unavailable"


class BadRequest(AccessError):
    kind = "BadRequest"
    status_code = 400
    default_message = "Invalid request"


def register_error_handlers(app) -> None:
    """Render AccessError and unexpected failures as structured JSON."""

    @app.errorhandler(AccessError)
    def handle_access_error(error: AccessError):
        if error.status_code >= 500:
            current_app.logger.error("%s: %s", error.kind, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({
            "status": "error",
            "error": error.name,
            "message": error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({
            "status": "error",
            "error": "InternalError",
            "message": "Internal server error",
        }), 500
