# Overview: Flask API routes for the audit log; query entries and append client-side events.

"""
Audit log routes.

The log is append-only: there is no PUT or DELETE. Entries written by the
services carry the actor, role, IP and user agent of the request that
caused them.

SECURITY:
- READ sees the whole store; READ_OWN only the caller's own entries.
- POST records an entry attributed to the caller, never to another user.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_any_permission
from ..extensions import db
from ..pagination import page_args
from ..permissions import Action, Resource, has_permission
from ..responses import ok, fail, service_error, internal_error, SERVICE_ERRORS
from ..services import audit_service
from ..services.reporting_service import parse_range
from ..services.tenant_service import current_actor

audit_logs_bp = Blueprint("audit_logs", __name__, url_prefix="/api/audit-logs")


@audit_logs_bp.get("")
@require_auth
@require_any_permission(Resource.AUDIT, Action.READ, Action.READ_OWN)
def list_audit_logs_route():
    """
    Query params: user_id, user_role, action, entity_type, entity_id,
    start, end (ISO-8601, inclusive), page, per_page. Newest first.
    """
    page, per_page = page_args()
    user_id = request.args.get("user_id", type=int)
    if not has_permission(g.current_user.role, Resource.AUDIT, Action.READ):
        user_id = g.current_user.id

    try:
        start, end = parse_range(request.args.get("start"), request.args.get("end"))
        items, pagination = audit_service.list_audit_logs(
            store_id=g.store_id,
            user_id=user_id,
            user_role=request.args.get("user_role"),
            action=request.args.get("action"),
            entity_type=request.args.get("entity_type"),
            entity_id=request.args.get("entity_id", type=int),
            start=start,
            end=end,
            page=page,
            per_page=per_page,
        )
        return ok([e.to_dict() for e in items], pagination=pagination)
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("list audit logs")


@audit_logs_bp.post("")
@require_auth
@require_any_permission(Resource.AUDIT, Action.READ, Action.READ_OWN)
def create_audit_log_route():
    """Body: action, entity_type (required); entity_id, old_data, new_data."""
    data = request.get_json(silent=True) or {}
    for key in ("action", "entity_type"):
        if data.get(key) is not None and not isinstance(data[key], str):
            return fail(f"{key} must be a string", 400)
    for key in ("old_data", "new_data"):
        if data.get(key) is not None and not isinstance(data[key], dict):
            return fail(f"{key} must be a JSON object", 400)
    entity_id = data.get("entity_id")
    if entity_id is not None and (isinstance(entity_id, bool) or not isinstance(entity_id, int)):
        return fail("entity_id must be an integer", 400)

    try:
        entry = audit_service.append_audit_log(
            actor=current_actor(),
            action=(data.get("action") or "").strip(),
            entity_type=(data.get("entity_type") or "").strip(),
            entity_id=entity_id,
            old_data=data.get("old_data"),
            new_data=data.get("new_data"),
        )
        db.session.commit()
        return ok(entry.to_dict(), 201, message="Audit log entry recorded")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create audit log")
