"""Error taxonomy shared by services and routes.

Every error is a Werkzeug HTTP exception so Flask renders it with the right
status; ``register_error_handlers`` turns them into JSON bodies.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException


class ServiceError(HTTPException):
    code = 500
    name = "ServiceError"

    def __init__(self, description=None):
        super().__init__(description=description)


class NotAuthenticated(ServiceError):
    code = 401
    name = "NotAuthenticated"
    description = "User must be authenticated"


class Forbidden(ServiceError):
    code = 403
    name = "Forbidden"
    description = "Not authorized"


class NotFound(ServiceError):
    code = 404
    name = "NotFound"
    description = "Resource not found"


class Conflict(ServiceError):
    # only ever raised for a write race the upsert contract should rule out
    code = 409
    name = "Conflict"
    description = "Conflicting write"


class ValidationError(ServiceError):
    code = 422
    name = "ValidationError"
    description = "Invalid input"

    def __init__(self, description=None, errors=None):
        super().__init__(description=description)
        self.errors = errors or {}


def handle_service_error(err):
    body = {"error": err.name, "message": err.description}
    errors = getattr(err, "errors", None)
    if errors:
        body["errors"] = errors
    return jsonify(body), err.code


def register_error_handlers(app):
    # Flask looks HTTP exceptions up by status code, so each class is registered on its own
    for cls in (NotAuthenticated, Forbidden, NotFound, Conflict, ValidationError):
        app.register_error_handler(cls, handle_service_error)
