# Overview: Service-layer operations for product categories.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, ModelValidationPolicy, validate_payload
from .audit_service import append_audit_log
from .tenant_service import get_scoped

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "parent_id", "is_active"},
    required_on_create={"name"},
)


def list_categories(*, store_id: int, include_inactive: bool = False, parent_id: int | None = None) -> list[dict]:
    query = db.session.query(Category).filter(Category.store_id == store_id)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    if parent_id is not None:
        query = query.filter(Category.parent_id == parent_id)
    categories = query.order_by(Category.name.asc()).all()

    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.store_id == store_id)
        .group_by(Product.category_id).all()
    )
    out = []
    for c in categories:
        data = c.to_dict()
        data["product_count"] = counts.get(c.id, 0)
        out.append(data)
    return out


def create_category(*, actor, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    if patch.get("parent_id") is not None:
        get_scoped(Category, patch["parent_id"], actor.store_id, label="Parent category")
    exists = db.session.query(Category.id).filter_by(store_id=actor.store_id, name=patch["name"]).first()
    if exists:
        raise ConflictError(f"Category '{patch['name']}' already exists")

    category = Category(store_id=actor.store_id, **patch)
    db.session.add(category)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="CATEGORY_CREATED",
        entity_type="CATEGORY",
        entity_id=category.id,
        new_data=category.to_dict(),
    )
    db.session.commit()
    return category
