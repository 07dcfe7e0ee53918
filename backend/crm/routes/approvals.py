# Overview: Flask API routes for approval workflows; list, request, inspect, and resolve.

"""
Approval workflow routes.

SECURITY:
- Business admins read every approval in the store and resolve them.
- Floor staff (READ_OWN) only see approvals they requested, and may file
  manual requests (REQUEST).
- The approver is always the authenticated caller.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_any_permission, require_permission
from ..models import ApprovalStatus
from ..pagination import page_args
from ..permissions import Action, Resource, has_permission
from ..responses import ok, fail, service_error, internal_error, SERVICE_ERRORS
from ..services import approval_service
from ..services.tenant_service import current_actor

approvals_bp = Blueprint("approvals", __name__, url_prefix="/api/approvals")

RESOLUTION_PERMISSION = {
    ApprovalStatus.APPROVED.value: Action.APPROVE,
    ApprovalStatus.REJECTED.value: Action.REJECT,
    ApprovalStatus.ESCALATED.value: Action.ESCALATE,
}


def _own_only() -> bool:
    return not has_permission(g.current_user.role, Resource.APPROVALS, Action.READ)


@approvals_bp.get("")
@require_auth
@require_any_permission(Resource.APPROVALS, Action.READ, Action.READ_OWN)
def list_approvals_route():
    """
    Query params: status, action_type, priority, page, per_page (alias limit).
    """
    page, per_page = page_args()
    try:
        items, pagination = approval_service.list_approvals(
            store_id=g.store_id,
            status=request.args.get("status"),
            action_type=request.args.get("action_type"),
            priority=request.args.get("priority"),
            requester_id=g.current_user.id if _own_only() else None,
            page=page,
            per_page=per_page,
        )
        return ok([a.to_dict() for a in items], pagination=pagination)
    except Exception:
        return internal_error("list approvals")


@approvals_bp.post("")
@require_auth
@require_permission(Resource.APPROVALS, Action.REQUEST)
def create_approval_route():
    """
    File a manual approval request.

    Body: {"action_type", "request_data": {...}, "priority"?, "notes"?}
    """
    data = request.get_json(silent=True) or {}
    if not data.get("action_type"):
        return fail("action_type is required", 400)
    if not isinstance(data.get("request_data"), dict):
        return fail("request_data must be a JSON object", 400)

    try:
        approval = approval_service.create_approval_request(
            actor=current_actor(),
            action_type=data["action_type"],
            request_data=data["request_data"],
            priority=data.get("priority"),
            notes=data.get("notes"),
        )
        return ok(approval.to_dict(), 201, message="Approval request created")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create approval")


@approvals_bp.get("/<int:approval_id>")
@require_auth
@require_any_permission(Resource.APPROVALS, Action.READ, Action.READ_OWN)
def get_approval_route(approval_id: int):
    try:
        approval = approval_service.get_approval(approval_id, g.store_id)
        if _own_only() and approval.requester_id != g.current_user.id:
            return fail("Approval not found", 404)
        return ok(approval.to_dict())
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("load approval")


@approvals_bp.put("/<int:approval_id>")
@require_auth
@require_any_permission(Resource.APPROVALS, Action.APPROVE, Action.REJECT, Action.ESCALATE)
def resolve_approval_route(approval_id: int):
    """
    Resolve a pending approval.

    Body: {"action": "APPROVED" | "REJECTED" | "ESCALATED", "notes"?}

    Responses:
    - 200 resolved (and, when approved, applied)
    - 400 invalid action or approval not PENDING
    - 404 approval not found
    - 409 approved but the change could not be applied (status EXECUTION_FAILED)
    """
    data = request.get_json(silent=True) or {}
    action = data.get("action")
    if not action:
        return fail("action is required", 400)
    action = str(action).upper()

    required = RESOLUTION_PERMISSION.get(action)
    if required is not None and not has_permission(g.current_user.role, Resource.APPROVALS, required):
        return fail("Permission denied", 403, details={"resource": Resource.APPROVALS.value, "action": required.value})

    actor = current_actor()
    try:
        approval = approval_service.resolve_approval(
            approval_id,
            action,
            g.current_user.id,
            data.get("notes"),
            store_id=g.store_id,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("resolve approval")

    if approval.status == ApprovalStatus.EXECUTION_FAILED.value:
        return fail(
            f"Approval recorded but the change could not be applied: {approval.execution_error}",
            409,
            data=approval.to_dict(),
        )
    return ok(approval.to_dict(), message=f"Approval {action.lower()} successfully")
