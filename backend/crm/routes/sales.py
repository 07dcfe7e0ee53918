# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/crm/routes/sales.py
"""
Sales routes.

WHY: Sales are where the approval thresholds bite. A sale above the amount
threshold, a discount above the discount threshold, or a caller who may
only request changes all turn the mutation into a PENDING approval (202).

SECURITY:
- Reads require sales READ.
- Create: CREATE or CREATE_PENDING. Update: UPDATE or UPDATE_PENDING.
- Delete: DELETE commits; UPDATE_PENDING files a SALE_DELETE approval.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission, require_any_permission
from ..pagination import page_args
from ..permissions import Action, Resource
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import sales_service
from ..services.approval_service import pending_response
from ..services.reporting_service import parse_range
from ..services.tenant_service import current_actor

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission(Resource.SALES, Action.READ)
def list_sales_route():
    """
    Query params: status, floor_id, user_id, customer_id, payment_method,
    start, end (ISO-8601, inclusive), page, per_page.

    `stats` covers every sale matching the filters, not only the page.
    """
    page, per_page = page_args()
    try:
        start, end = parse_range(request.args.get("start"), request.args.get("end"))
        filters = dict(
            status=request.args.get("status"),
            floor_id=request.args.get("floor_id", type=int),
            user_id=request.args.get("user_id", type=int),
            customer_id=request.args.get("customer_id", type=int),
            payment_method=request.args.get("payment_method"),
            start=start,
            end=end,
        )
        items, pagination = sales_service.list_sales(
            store_id=g.store_id, page=page, per_page=per_page, **filters
        )
        return ok(
            [s.to_dict() for s in items],
            pagination=pagination,
            stats=sales_service.sales_stats(g.store_id, **filters),
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("list sales")


@sales_bp.post("")
@require_auth
@require_any_permission(Resource.SALES, Action.CREATE, Action.CREATE_PENDING)
def create_sale_route():
    """
    Body: customer_id, product_id, amount_cents (required); quantity,
    discount_cents, payment_method, status, floor_id, user_id, notes.
    """
    try:
        result = sales_service.create_sale(
            actor=current_actor(),
            payload=request.get_json(silent=True) or {},
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create sale")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Sale submitted for approval")
    return ok(result.entity.to_dict(), 201, message="Sale created successfully")


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission(Resource.SALES, Action.READ)
def get_sale_route(sale_id: int):
    try:
        return ok(sales_service.get_sale(sale_id, g.store_id).to_dict())
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("load sale")


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_any_permission(Resource.SALES, Action.UPDATE, Action.UPDATE_PENDING)
def update_sale_route(sale_id: int):
    try:
        result = sales_service.update_sale(
            actor=current_actor(),
            sale_id=sale_id,
            payload=request.get_json(silent=True) or {},
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("update sale")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Sale update submitted for approval")
    return ok(result.entity.to_dict(), message="Sale updated successfully")


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_any_permission(Resource.SALES, Action.DELETE, Action.UPDATE_PENDING)
def delete_sale_route(sale_id: int):
    try:
        result = sales_service.delete_sale(actor=current_actor(), sale_id=sale_id)
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("delete sale")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Sale deletion submitted for approval")
    return ok(message="Sale deleted successfully")
