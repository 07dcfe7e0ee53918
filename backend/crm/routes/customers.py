# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

# backend/crm/routes/customers.py
"""
Customer management routes.

MULTI-TENANT: Every query and mutation is scoped to g.store_id.

SECURITY:
- Reads require customers READ.
- Create/update accept CREATE or CREATE_PENDING (UPDATE or UPDATE_PENDING);
  callers holding only the *_PENDING grant get a 202 with a filed approval.
- Changes touching a HIGH_VALUE customer always go through approval.
- Delete is admin-only and refuses customers with sales on record.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission, require_any_permission
from ..pagination import page_args
from ..permissions import Action, Resource
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import customer_service
from ..services.approval_service import pending_response
from ..services.tenant_service import current_actor

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission(Resource.CUSTOMERS, Action.READ)
def list_customers_route():
    """
    Query params: search, status, floor_id, assigned_to_id, customer_value, page, per_page.

    Response carries `stats` (totals by status, high-value count) next to the page.
    """
    page, per_page = page_args()
    try:
        items, pagination = customer_service.list_customers(
            store_id=g.store_id,
            search=request.args.get("search"),
            status=request.args.get("status"),
            floor_id=request.args.get("floor_id", type=int),
            assigned_to_id=request.args.get("assigned_to_id", type=int),
            customer_value=request.args.get("customer_value"),
            page=page,
            per_page=per_page,
        )
        return ok(
            [c.to_dict() for c in items],
            pagination=pagination,
            stats=customer_service.customer_stats(g.store_id),
        )
    except Exception:
        return internal_error("list customers")


@customers_bp.post("")
@require_auth
@require_any_permission(Resource.CUSTOMERS, Action.CREATE, Action.CREATE_PENDING)
def create_customer_route():
    try:
        result = customer_service.create_customer(
            actor=current_actor(),
            payload=request.get_json(silent=True) or {},
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create customer")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Customer submitted for approval")
    return ok(result.entity.to_dict(), 201, message="Customer created successfully")


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission(Resource.CUSTOMERS, Action.READ)
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id, g.store_id)
        return ok(customer.to_dict())
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("load customer")


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_any_permission(Resource.CUSTOMERS, Action.UPDATE, Action.UPDATE_PENDING)
def update_customer_route(customer_id: int):
    try:
        result = customer_service.update_customer(
            actor=current_actor(),
            customer_id=customer_id,
            payload=request.get_json(silent=True) or {},
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("update customer")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Customer update submitted for approval")
    return ok(result.entity.to_dict(), message="Customer updated successfully")


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission(Resource.CUSTOMERS, Action.DELETE)
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(actor=current_actor(), customer_id=customer_id)
        return ok(message="Customer deleted successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("delete customer")
