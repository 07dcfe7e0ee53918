# Overview: JSON envelope helpers shared by every blueprint.

"""
Every API response uses the same envelope:

    {"success": bool, "data"?: ..., "error"?: str, "message"?: str, "pagination"?: {...}}

Routes return ``ok(...)`` / ``fail(...)`` tuples so the status code travels
with the body.
"""

from flask import current_app, jsonify

from .extensions import db
from .services.permission_service import PermissionDeniedError
from .validation import ConflictError, InvalidStateError, NotFoundError, ValidationError

# Exceptions a route converts to a 4xx envelope.
SERVICE_ERRORS = (ValidationError, ConflictError, NotFoundError, InvalidStateError, PermissionDeniedError)


def ok(data=None, status: int = 200, *, message: str | None = None, pagination: dict | None = None, **extra):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    return jsonify(body), status


def fail(error: str, status: int, *, details=None, data=None):
    body = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def service_error(e: Exception):
    """
    Map a service-layer exception to its envelope and discard the
    half-finished unit of work.
    """
    db.session.rollback()
    if isinstance(e, ConflictError):
        return fail(str(e), 409)
    if isinstance(e, PermissionDeniedError):
        return fail("Permission denied", 403, details={"resource": e.resource, "action": e.action, "message": str(e)})
    if isinstance(e, NotFoundError):
        return fail(str(e) or "Not found", 404)
    return fail(str(e), 400)


def internal_error(what: str):
    db.session.rollback()
    current_app.logger.exception("Failed to %s", what)
    return fail("Internal server error", 500)
