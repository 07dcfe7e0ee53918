# Overview: Flask API routes for team management; list staff, add staff, and move staff between floors.

"""
Team routes.

SECURITY:
- Listing requires team READ (every role).
- Adding staff requires team CREATE; floor moves require team UPDATE.
  Staff who want a floor move file a FLOOR_ASSIGNMENT approval instead.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..pagination import page_args
from ..permissions import Action, Resource
from ..responses import ok, fail, service_error, internal_error, SERVICE_ERRORS
from ..services import user_service
from ..services.tenant_service import current_actor

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission(Resource.TEAM, Action.READ)
def list_users_route():
    """Query params: role, floor_id, status (ACTIVE|INACTIVE), search, page, per_page."""
    page, per_page = page_args()
    try:
        items, pagination = user_service.list_users(
            store_id=g.store_id,
            role=request.args.get("role"),
            floor_id=request.args.get("floor_id", type=int),
            status=request.args.get("status"),
            search=request.args.get("search"),
            page=page,
            per_page=per_page,
        )
        return ok([u.to_dict() for u in items], pagination=pagination)
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("list users")


@users_bp.post("")
@require_auth
@require_permission(Resource.TEAM, Action.CREATE)
def create_user_route():
    """Body: name, email, password, role?, floor_id?"""
    try:
        user = user_service.create_staff_user(actor=current_actor(), payload=request.get_json(silent=True) or {})
        return ok(user.to_dict(), 201, message="User created successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create user")


@users_bp.put("/<int:user_id>/floor")
@require_auth
@require_permission(Resource.TEAM, Action.UPDATE)
def assign_floor_route(user_id: int):
    """Body: {"floor_id": int | null}"""
    data = request.get_json(silent=True) or {}
    if "floor_id" not in data:
        return fail("floor_id is required", 400)
    try:
        user = user_service.assign_floor(actor=current_actor(), user_id=user_id, floor_id=data["floor_id"])
        return ok(user.to_dict(), message="Floor assigned successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("assign floor")
