# Overview: Service-layer operations for customers; direct writes or approval requests.

"""
Customer Service

MULTI-TENANT: Every lookup goes through tenant_service.get_scoped.

APPROVALS:
- Create: floor staff hold only CREATE_PENDING, so their new customers are
  filed as CUSTOMER_CREATE approvals.
- Update: HIGH_VALUE customers (before or after the edit) and callers
  without UPDATE are routed to a CUSTOMER_UPDATE approval.
- Delete: business admins only; refused while the customer has sales.
"""

from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..models import ActionType, Customer, Floor, Sale, User
from ..pagination import paginate
from ..permissions import Action, Resource
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_customer,
    validate_payload,
)
from .approval_service import create_approval_request
from .audit_service import append_audit_log
from .mutation import (
    REASON_HIGH_VALUE_CUSTOMER,
    REASON_REQUESTER_CANNOT_COMMIT,
    MutationResult,
    request_payload,
)
from .permission_service import can_commit
from .tenant_service import get_scoped
from .threshold_service import requires_approval

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "phone", "email", "address", "city", "state", "pincode",
        "gender", "date_of_birth", "status", "customer_value", "notes",
        "floor_id", "assigned_to_id",
    },
    required_on_create={"name", "phone"},
)


def clean_customer_payload(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=partial)
    enforce_rules_customer(patch)
    return patch


def _check_references(patch: dict, store_id: int) -> None:
    if patch.get("floor_id") is not None:
        get_scoped(Floor, patch["floor_id"], store_id, label="Floor")
    if patch.get("assigned_to_id") is not None:
        get_scoped(User, patch["assigned_to_id"], store_id, label="Assigned user")


def _check_phone_unique(store_id: int, phone: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Customer.id).filter(Customer.store_id == store_id, Customer.phone == phone)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise ConflictError(f"Customer with phone '{phone}' already exists")


def list_customers(
    *,
    store_id: int,
    search: str | None = None,
    status: str | None = None,
    floor_id: int | None = None,
    assigned_to_id: int | None = None,
    customer_value: str | None = None,
    page: int = 1,
    per_page: int = 20,
):
    query = db.session.query(Customer).filter(Customer.store_id == store_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like)))
    if status:
        query = query.filter(Customer.status == status.upper())
    if floor_id is not None:
        query = query.filter(Customer.floor_id == floor_id)
    if assigned_to_id is not None:
        query = query.filter(Customer.assigned_to_id == assigned_to_id)
    if customer_value:
        query = query.filter(Customer.customer_value == customer_value.upper())
    query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
    return paginate(query, page, per_page)


def customer_stats(store_id: int) -> dict:
    rows = (
        db.session.query(Customer.status, func.count(Customer.id))
        .filter(Customer.store_id == store_id)
        .group_by(Customer.status)
        .all()
    )
    by_status = {status: count for status, count in rows}
    high_value = (
        db.session.query(func.count(Customer.id))
        .filter(Customer.store_id == store_id, Customer.customer_value == "HIGH_VALUE")
        .scalar()
    )
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "high_value": high_value or 0,
    }


def get_customer(customer_id: int, store_id: int) -> Customer:
    return get_scoped(Customer, customer_id, store_id, label="Customer")


def apply_customer_create(actor, patch: dict) -> Customer:
    """Insert + CUSTOMER_CREATED audit. Flush only."""
    _check_references(patch, actor.store_id)
    _check_phone_unique(actor.store_id, patch["phone"])
    customer = Customer(store_id=actor.store_id, **patch)
    db.session.add(customer)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="CUSTOMER_CREATED",
        entity_type="CUSTOMER",
        entity_id=customer.id,
        new_data=customer.to_dict(),
    )
    return customer


def apply_customer_update(actor, customer: Customer, patch: dict) -> Customer:
    """Patch + CUSTOMER_UPDATED audit. Flush only."""
    _check_references(patch, actor.store_id)
    if "phone" in patch and patch["phone"] != customer.phone:
        _check_phone_unique(actor.store_id, patch["phone"], exclude_id=customer.id)
    before = customer.to_dict()
    for k, v in patch.items():
        setattr(customer, k, v)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="CUSTOMER_UPDATED",
        entity_type="CUSTOMER",
        entity_id=customer.id,
        old_data=before,
        new_data=customer.to_dict(),
    )
    return customer


def create_customer(*, actor, payload: dict) -> MutationResult:
    patch = clean_customer_payload(payload, partial=False)
    _check_references(patch, actor.store_id)
    _check_phone_unique(actor.store_id, patch["phone"])

    if not can_commit(actor.user, Resource.CUSTOMERS, Action.CREATE, Action.CREATE_PENDING):
        reasons = [REASON_REQUESTER_CANNOT_COMMIT]
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.CUSTOMER_CREATE,
            request_data=request_payload(entity_id=None, previous=None, proposed=patch, reasons=reasons),
        )
        return MutationResult(approval=approval, reasons=reasons)

    customer = apply_customer_create(actor, patch)
    db.session.commit()
    return MutationResult(entity=customer)


def update_customer(*, actor, customer_id: int, payload: dict) -> MutationResult:
    customer = get_customer(customer_id, actor.store_id)
    patch = clean_customer_payload(payload, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    _check_references(patch, actor.store_id)
    if "phone" in patch and patch["phone"] != customer.phone:
        _check_phone_unique(actor.store_id, patch["phone"], exclude_id=customer.id)

    reasons = []
    if (
        requires_approval(ActionType.CUSTOMER_UPDATE, {"customer_value": customer.customer_value})
        or requires_approval(ActionType.CUSTOMER_UPDATE, {"customer_value": patch.get("customer_value")})
    ):
        reasons.append(REASON_HIGH_VALUE_CUSTOMER)
    if not can_commit(actor.user, Resource.CUSTOMERS, Action.UPDATE, Action.UPDATE_PENDING):
        reasons.append(REASON_REQUESTER_CANNOT_COMMIT)

    if reasons:
        approval = create_approval_request(
            actor=actor,
            action_type=ActionType.CUSTOMER_UPDATE,
            request_data=request_payload(
                entity_id=customer.id, previous=customer.to_dict(), proposed=patch, reasons=reasons,
            ),
        )
        return MutationResult(approval=approval, reasons=reasons)

    apply_customer_update(actor, customer, patch)
    db.session.commit()
    return MutationResult(entity=customer)


def delete_customer(*, actor, customer_id: int) -> Customer:
    customer = get_customer(customer_id, actor.store_id)
    has_sales = db.session.query(Sale.id).filter(Sale.customer_id == customer.id).first()
    if has_sales:
        raise ConflictError("Customer has sales and cannot be deleted")
    before = customer.to_dict()
    db.session.delete(customer)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="CUSTOMER_DELETED",
        entity_type="CUSTOMER",
        entity_id=customer_id,
        old_data=before,
    )
    db.session.commit()
    return customer
