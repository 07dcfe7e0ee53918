# Overview: Flask API routes for escalations; raise, list, inspect, and advance tickets.

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission, require_any_permission
from ..pagination import page_args
from ..permissions import Action, Resource, has_permission
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import escalation_service
from ..services.tenant_service import current_actor

escalations_bp = Blueprint("escalations", __name__, url_prefix="/api/escalations")


def _visible_to():
    """READ_OWN callers only see escalations they raised or are assigned."""
    if has_permission(g.current_user.role, Resource.ESCALATIONS, Action.READ):
        return None
    return g.current_user.id


@escalations_bp.get("")
@require_auth
@require_any_permission(Resource.ESCALATIONS, Action.READ, Action.READ_OWN)
def list_escalations_route():
    page, per_page = page_args()
    try:
        items, pagination = escalation_service.list_escalations(
            store_id=g.store_id,
            status=request.args.get("status"),
            priority=request.args.get("priority"),
            floor_id=request.args.get("floor_id", type=int),
            visible_to=_visible_to(),
            page=page,
            per_page=per_page,
        )
        return ok([e.to_dict() for e in items], pagination=pagination)
    except Exception:
        return internal_error("list escalations")


@escalations_bp.post("")
@require_auth
@require_permission(Resource.ESCALATIONS, Action.CREATE)
def create_escalation_route():
    """Body: title, description (required); priority, assignee_id, floor_id."""
    try:
        escalation = escalation_service.create_escalation(
            actor=current_actor(),
            payload=request.get_json(silent=True) or {},
        )
        return ok(escalation.to_dict(), 201, message="Escalation created successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create escalation")


@escalations_bp.get("/<int:escalation_id>")
@require_auth
@require_any_permission(Resource.ESCALATIONS, Action.READ, Action.READ_OWN)
def get_escalation_route(escalation_id: int):
    try:
        escalation = escalation_service.get_escalation(escalation_id, g.store_id, visible_to=_visible_to())
        return ok(escalation.to_dict())
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("load escalation")


@escalations_bp.put("/<int:escalation_id>")
@require_auth
@require_any_permission(Resource.ESCALATIONS, Action.READ, Action.READ_OWN)
def update_escalation_route(escalation_id: int):
    """
    Body: {"status"?, "assignee_id"?}

    Permission is checked per transition in the service: the assignee may
    advance their own escalation; everyone else needs ASSIGN/RESOLVE/CLOSE.
    """
    try:
        escalation_service.get_escalation(escalation_id, g.store_id, visible_to=_visible_to())
        escalation = escalation_service.update_escalation(
            actor=current_actor(),
            escalation_id=escalation_id,
            payload=request.get_json(silent=True) or {},
        )
        return ok(escalation.to_dict(), message="Escalation updated successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("update escalation")
