# backend/crm/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are store-scoped.
- list_products filters to the caller's store
- SKU uniqueness is per store
- category_id must belong to the same store

APPROVALS: A price change above PRODUCT_PRICE_CHANGE_THRESHOLD percent is
filed as a PRODUCT_UPDATE approval even for business admins; every other
product edit applies directly.
"""
from __future__ import annotations

from sqlalchemy import case, func, or_

from ..extensions import db
from ..models import ActionType, Category, Product, Sale
from ..pagination import paginate
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .approval_service import create_approval_request
from .audit_service import append_audit_log
from .mutation import REASON_PRICE_CHANGE_THRESHOLD, MutationResult, request_payload
from .tenant_service import get_scoped
from .threshold_service import requires_approval

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "price_cents", "cost_price_cents",
        "weight_grams", "material", "gemstone", "purity",
        "stock_quantity", "min_stock_level", "images", "specifications",
        "is_active", "category_id",
    },
    required_on_create={"sku", "name", "price_cents"},
)


def clean_product_payload(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


def _check_sku_unique(store_id: int, sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.store_id == store_id, Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"SKU '{sku}' already exists")


def _check_references(patch: dict, store_id: int) -> None:
    if patch.get("category_id") is not None:
        get_scoped(Category, patch["category_id"], store_id, label="Category")


def list_products(
    *,
    store_id: int,
    search: str | None = None,
    category_id: int | None = None,
    status: str | None = None,
    page: int = 1,
    per_page: int = 20,
):
    """
    Store-scoped product listing.

    status: ACTIVE | INACTIVE | LOW_STOCK (stock_quantity <= min_stock_level)
    """
    query = db.session.query(Product).filter(Product.store_id == store_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.description.ilike(like),
            Product.material.ilike(like),
        ))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if status:
        status = status.upper()
        if status == "ACTIVE":
            query = query.filter(Product.is_active.is_(True))
        elif status == "INACTIVE":
            query = query.filter(Product.is_active.is_(False))
        elif status == "LOW_STOCK":
            query = query.filter(Product.stock_quantity <= Product.min_stock_level)
        else:
            raise ValidationError("status must be one of: ACTIVE, INACTIVE, LOW_STOCK")
    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, per_page)


def product_stats(store_id: int) -> dict:
    total, active, total_value, average = (
        db.session.query(
            func.count(Product.id),
            func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(Product.price_cents), 0),
            func.coalesce(func.avg(Product.price_cents), 0),
        )
        .filter(Product.store_id == store_id)
        .one()
    )
    low_stock = (
        db.session.query(func.count(Product.id))
        .filter(Product.store_id == store_id, Product.stock_quantity <= Product.min_stock_level)
        .scalar()
    )
    return {
        "total": total,
        "active": int(active),
        "inactive": total - int(active),
        "low_stock": low_stock or 0,
        "total_value_cents": int(total_value),
        "average_price_cents": int(round(average or 0)),
    }


def get_product(product_id: int, store_id: int) -> Product:
    return get_scoped(Product, product_id, store_id, label="Product")


def create_product(*, actor, payload: dict) -> Product:
    patch = clean_product_payload(payload, partial=False)
    _check_references(patch, actor.store_id)
    _check_sku_unique(actor.store_id, patch["sku"])

    product = Product(store_id=actor.store_id, **patch)
    db.session.add(product)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="PRODUCT_CREATED",
        entity_type="PRODUCT",
        entity_id=product.id,
        new_data=product.to_dict(),
    )
    db.session.commit()
    return product


def apply_product_update(actor, product: Product, patch: dict) -> Product:
    """Patch + PRODUCT_UPDATED audit. Flush only."""
    _check_references(patch, actor.store_id)
    if "sku" in patch and patch["sku"] != product.sku:
        _check_sku_unique(actor.store_id, patch["sku"], exclude_id=product.id)
    before = product.to_dict()
    for k, v in patch.items():
        setattr(product, k, v)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="PRODUCT_UPDATED",
        entity_type="PRODUCT",
        entity_id=product.id,
        old_data=before,
        new_data=product.to_dict(),
    )
    return product


def update_product(*, actor, product_id: int, payload: dict) -> MutationResult:
    product = get_product(product_id, actor.store_id)
    patch = clean_product_payload(payload, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    _check_references(patch, actor.store_id)
    if "sku" in patch and patch["sku"] != product.sku:
        _check_sku_unique(actor.store_id, patch["sku"], exclude_id=product.id)

    new_price = patch.get("price_cents")
    if new_price is not None and requires_approval(
        ActionType.PRODUCT_UPDATE,
        {"old_price_cents": product.price_cents, "new_price_cents": new_price},
    ):
        reasons = [REASON_PRICE_CHANGE_THRESHOLD]
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.PRODUCT_UPDATE,
            request_data=request_payload(
                entity_id=product.id, previous=product.to_dict(), proposed=patch, reasons=reasons,
            ),
        )
        return MutationResult(approval=approval, reasons=reasons)

    apply_product_update(actor, product, patch)
    db.session.commit()
    return MutationResult(entity=product)


def delete_product(*, actor, product_id: int) -> Product:
    product = get_product(product_id, actor.store_id)
    if db.session.query(Sale.id).filter(Sale.product_id == product.id).first():
        raise ConflictError("Product has sales; deactivate it instead")
    before = product.to_dict()
    db.session.delete(product)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="PRODUCT_DELETED",
        entity_type="PRODUCT",
        entity_id=product_id,
        old_data=before,
    )
    db.session.commit()
    return product
