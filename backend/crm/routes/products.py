# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/crm/routes/products.py
"""
Product catalog routes.

MULTI-TENANT: Products are scoped to g.store_id; SKUs are unique per store.

SECURITY:
- Read operations require products READ.
- Create/update/delete require the matching admin grant.
- A price change above the threshold is filed as a PRODUCT_UPDATE approval
  even when the caller could commit it (202).
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..pagination import page_args
from ..permissions import Action, Resource
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import products_service
from ..services.approval_service import pending_response
from ..services.tenant_service import current_actor

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission(Resource.PRODUCTS, Action.READ)
def list_products_route():
    """
    List products with pagination and catalog stats.

    Query params:
    - search: matches name, sku, description, material
    - category_id: int
    - status: ACTIVE | INACTIVE | LOW_STOCK
    - page, per_page (alias limit; max 100)
    """
    page, per_page = page_args()
    try:
        items, pagination = products_service.list_products(
            store_id=g.store_id,
            search=request.args.get("search"),
            category_id=request.args.get("category_id", type=int),
            status=request.args.get("status"),
            page=page,
            per_page=per_page,
        )
        return ok(
            [p.to_dict() for p in items],
            pagination=pagination,
            stats=products_service.product_stats(g.store_id),
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("list products")


@products_bp.post("")
@require_auth
@require_permission(Resource.PRODUCTS, Action.CREATE)
def create_product_route():
    try:
        product = products_service.create_product(
            actor=current_actor(),
            payload=request.get_json(silent=True) or {},
        )
        return ok(product.to_dict(), 201, message="Product created successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create product")


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, Action.READ)
def get_product_route(product_id: int):
    try:
        return ok(products_service.get_product(product_id, g.store_id).to_dict())
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("load product")


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, Action.UPDATE)
def update_product_route(product_id: int):
    try:
        result = products_service.update_product(
            actor=current_actor(),
            product_id=product_id,
            payload=request.get_json(silent=True) or {},
        )
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("update product")

    if result.pending:
        return ok(pending_response(result.approval), 202, message="Price change submitted for approval")
    return ok(result.entity.to_dict(), message="Product updated successfully")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission(Resource.PRODUCTS, Action.DELETE)
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(actor=current_actor(), product_id=product_id)
        return ok(message="Product deleted successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("delete product")
