# Overview: Service-layer operations for sales; direct writes or approval requests.

"""
Sales Service

A sale records one product sold to one customer by one salesperson.
amount_cents is gross; total_amount_cents = amount_cents - discount_cents.

APPROVALS (any reason files an approval instead of writing):
- amount_cents above the sale-amount threshold (create, or update that changes it)
- discount above the discount-percentage threshold
- caller holds only CREATE_PENDING / UPDATE_PENDING on sales
  (deletes are requested with UPDATE_PENDING)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import ActionType, Customer, Floor, Product, Sale, User
from ..pagination import paginate
from ..permissions import Action, Resource
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_sale,
    validate_payload,
)
from .approval_service import create_approval_request
from .audit_service import append_audit_log
from .mutation import (
    REASON_AMOUNT_THRESHOLD,
    REASON_DISCOUNT_THRESHOLD,
    REASON_REQUESTER_CANNOT_COMMIT,
    MutationResult,
    request_payload,
)
from .permission_service import can_commit
from .tenant_service import get_scoped
from .threshold_service import discount_percentage, requires_approval

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "product_id", "user_id", "floor_id",
        "quantity", "amount_cents", "discount_cents",
        "payment_method", "status", "notes",
    },
    required_on_create={"customer_id", "product_id", "amount_cents"},
)

SALE_FIELDS = (
    "customer_id", "product_id", "user_id", "floor_id",
    "quantity", "amount_cents", "discount_cents", "total_amount_cents",
    "payment_method", "status", "notes",
)


def clean_sale_payload(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=partial)
    enforce_rules_sale(patch)
    return patch


def _resolve(data: dict, store_id: int) -> dict:
    """Check references inside the store, fill defaults, and compute the total."""
    get_scoped(Customer, data.get("customer_id"), store_id, label="Customer")
    get_scoped(Product, data.get("product_id"), store_id, label="Product")
    salesperson = get_scoped(User, data.get("user_id"), store_id, label="Salesperson")
    if data.get("floor_id") is None:
        data["floor_id"] = salesperson.floor_id
    else:
        get_scoped(Floor, data["floor_id"], store_id, label="Floor")

    data.setdefault("quantity", 1)
    if data.get("discount_cents") is None:
        data["discount_cents"] = 0
    data.setdefault("payment_method", "CASH")
    data.setdefault("status", "COMPLETED")
    data.setdefault("notes", None)
    if data["discount_cents"] > data["amount_cents"]:
        raise ValidationError("discount_cents cannot exceed amount_cents")
    data["total_amount_cents"] = data["amount_cents"] - data["discount_cents"]
    return data


def _snapshot(sale: Sale) -> dict:
    return {k: getattr(sale, k) for k in SALE_FIELDS}


def list_sales(
    *,
    store_id: int,
    status: str | None = None,
    floor_id: int | None = None,
    user_id: int | None = None,
    customer_id: int | None = None,
    payment_method: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    per_page: int = 20,
):
    query = _filtered(store_id, status=status, floor_id=floor_id, user_id=user_id,
                      customer_id=customer_id, payment_method=payment_method, start=start, end=end)
    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(query, page, per_page)


def _filtered(store_id, *, status=None, floor_id=None, user_id=None, customer_id=None,
              payment_method=None, start=None, end=None):
    query = db.session.query(Sale).filter(Sale.store_id == store_id)
    if status:
        query = query.filter(Sale.status == status.upper())
    if floor_id is not None:
        query = query.filter(Sale.floor_id == floor_id)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    if payment_method:
        query = query.filter(Sale.payment_method == payment_method.upper())
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end)
    return query


def sales_stats(store_id: int, **filters) -> dict:
    query = _filtered(store_id, **filters)
    count, revenue, discount, average = query.with_entities(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount_cents), 0),
        func.coalesce(func.sum(Sale.discount_cents), 0),
        func.coalesce(func.avg(Sale.total_amount_cents), 0),
    ).one()
    by_status = dict(
        query.with_entities(Sale.status, func.count(Sale.id)).group_by(Sale.status).all()
    )
    return {
        "total": count,
        "by_status": by_status,
        "total_revenue_cents": int(revenue),
        "total_discount_cents": int(discount),
        "average_sale_cents": int(round(average or 0)),
    }


def get_sale(sale_id: int, store_id: int) -> Sale:
    return get_scoped(Sale, sale_id, store_id, label="Sale")


def apply_sale_create(actor, data: dict) -> Sale:
    """Insert + SALE_CREATED audit. Flush only."""
    data = _resolve(dict(data), actor.store_id)
    sale = Sale(store_id=actor.store_id, **{k: data[k] for k in SALE_FIELDS})
    db.session.add(sale)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="SALE_CREATED",
        entity_type="SALE",
        entity_id=sale.id,
        new_data=sale.to_dict(),
    )
    return sale


def apply_sale_update(actor, sale: Sale, patch: dict) -> Sale:
    """Merge patch, recompute total, SALE_UPDATED audit. Flush only."""
    merged = _resolve({**_snapshot(sale), **patch}, actor.store_id)
    before = sale.to_dict()
    for k in SALE_FIELDS:
        setattr(sale, k, merged[k])
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="SALE_UPDATED",
        entity_type="SALE",
        entity_id=sale.id,
        old_data=before,
        new_data=sale.to_dict(),
    )
    return sale


def apply_sale_delete(actor, sale: Sale) -> None:
    """Delete + SALE_DELETED audit. Flush only."""
    before = sale.to_dict()
    sale_id = sale.id
    db.session.delete(sale)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="SALE_DELETED",
        entity_type="SALE",
        entity_id=sale_id,
        old_data=before,
    )


def _discount_reason(data: dict) -> list[str]:
    pct = discount_percentage(data["amount_cents"], data["discount_cents"])
    if requires_approval(ActionType.DISCOUNT_APPLY, {"discount_percentage": pct}):
        return [REASON_DISCOUNT_THRESHOLD]
    return []


def create_sale(*, actor, payload: dict) -> MutationResult:
    patch = clean_sale_payload(payload, partial=False)
    patch.setdefault("user_id", actor.id)
    data = _resolve(patch, actor.store_id)

    reasons = []
    if requires_approval(ActionType.SALE_CREATE, {"amount_cents": data["amount_cents"]}):
        reasons.append(REASON_AMOUNT_THRESHOLD)
    reasons += _discount_reason(data)
    if not can_commit(actor.user, Resource.SALES, Action.CREATE, Action.CREATE_PENDING):
        reasons.append(REASON_REQUESTER_CANNOT_COMMIT)

    if reasons:
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.SALE_CREATE,
            request_data=request_payload(entity_id=None, previous=None, proposed=data, reasons=reasons),
        )
        return MutationResult(approval=approval, reasons=reasons)

    sale = apply_sale_create(actor, data)
    db.session.commit()
    return MutationResult(entity=sale)


def update_sale(*, actor, sale_id: int, payload: dict) -> MutationResult:
    sale = get_sale(sale_id, actor.store_id)
    patch = clean_sale_payload(payload, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    merged = _resolve({**_snapshot(sale), **patch}, actor.store_id)

    reasons = []
    if merged["amount_cents"] != sale.amount_cents and requires_approval(
        ActionType.SALE_CREATE, {"amount_cents": merged["amount_cents"]}
    ):
        reasons.append(REASON_AMOUNT_THRESHOLD)
    if (merged["amount_cents"], merged["discount_cents"]) != (sale.amount_cents, sale.discount_cents):
        reasons += _discount_reason(merged)
    if not can_commit(actor.user, Resource.SALES, Action.UPDATE, Action.UPDATE_PENDING):
        reasons.append(REASON_REQUESTER_CANNOT_COMMIT)

    if reasons:
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.SALE_UPDATE,
            request_data=request_payload(
                entity_id=sale.id, previous=sale.to_dict(), proposed=patch, reasons=reasons,
            ),
        )
        return MutationResult(approval=approval, reasons=reasons)

    apply_sale_update(actor, sale, patch)
    db.session.commit()
    return MutationResult(entity=sale)


def delete_sale(*, actor, sale_id: int) -> MutationResult:
    sale = get_sale(sale_id, actor.store_id)

    if not can_commit(actor.user, Resource.SALES, Action.DELETE, Action.UPDATE_PENDING):
        reasons = [REASON_REQUESTER_CANNOT_COMMIT]
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.SALE_DELETE,
            request_data=request_payload(
                entity_id=sale.id, previous=sale.to_dict(), proposed=None, reasons=reasons,
            ),
        )
        return MutationResult(approval=approval, reasons=reasons)

    snapshot = sale.to_dict()
    apply_sale_delete(actor, sale)
    db.session.commit()
    return MutationResult(entity=snapshot)
