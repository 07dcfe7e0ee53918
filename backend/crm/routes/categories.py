# Overview: Flask API routes for product categories; list with product counts and create.

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..permissions import Action, Resource
from ..responses import ok, service_error, internal_error, SERVICE_ERRORS
from ..services import catalog_service
from ..services.tenant_service import current_actor

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission(Resource.PRODUCTS, Action.READ)
def list_categories_route():
    try:
        return ok(catalog_service.list_categories(
            store_id=g.store_id,
            include_inactive=request.args.get("include_inactive", "").lower() == "true",
            parent_id=request.args.get("parent_id", type=int),
        ))
    except Exception:
        return internal_error("list categories")


@categories_bp.post("")
@require_auth
@require_permission(Resource.PRODUCTS, Action.CREATE)
def create_category_route():
    try:
        category = catalog_service.create_category(
            actor=current_actor(),
            payload=request.get_json(silent=True) or {},
        )
        return ok(category.to_dict(), 201, message="Category created successfully")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("create category")
