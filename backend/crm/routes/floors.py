# Overview: Flask API routes for store floors; list with rollups and create.

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..permissions import Action, Resource
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import floor_service
from ..services.tenant_service import current_actor

floors_bp = Blueprint("floors", __name__, url_prefix="/api/floors")


@floors_bp.get("")
@require_auth
@require_permission(Resource.FLOORS, Action.READ)
def list_floors_route():
    """
    Floors of the caller's store with staff/customer counts and revenue.

    Query params: include_inactive=true
    """
    include_inactive = request.args.get("include_inactive", "").lower() == "true"
    try:
        return ok(floor_service.list_floors(store_id=g.store_id, include_inactive=include_inactive))
    except Exception:
        return internal_error("list floors")


@floors_bp.post("")
@require_auth
@require_permission(Resource.FLOORS, Action.CREATE)
def create_floor_route():
    try:
        floor = floor_service.create_floor(actor=current_actor(), payload=request.get_json(silent=True) or {})
        return ok(floor.to_dict(), 201, message="Floor created successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create floor")
