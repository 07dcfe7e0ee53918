# Overview: Service-layer operations for floors; listing with staff/customer/revenue rollups.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Floor, Sale, User
from ..validation import ConflictError, ModelValidationPolicy, ValidationError, validate_payload
from .audit_service import append_audit_log

FLOOR_POLICY = ModelValidationPolicy(
    writable_fields={"name", "number", "description", "is_active"},
    required_on_create={"name", "number"},
)


def list_floors(*, store_id: int, include_inactive: bool = False, floor_id: int | None = None) -> list[dict]:
    """
    Floors with rollups: staff_count, customer_count, sales_count, revenue_cents.

    Aggregates run as grouped subqueries so the list is one round trip per metric.
    """
    query = db.session.query(Floor).filter(Floor.store_id == store_id)
    if not include_inactive:
        query = query.filter(Floor.is_active.is_(True))
    if floor_id is not None:
        query = query.filter(Floor.id == floor_id)
    floors = query.order_by(Floor.number.asc()).all()

    staff = dict(
        db.session.query(User.floor_id, func.count(User.id))
        .filter(User.store_id == store_id, User.is_active.is_(True))
        .group_by(User.floor_id).all()
    )
    customers = dict(
        db.session.query(Customer.floor_id, func.count(Customer.id))
        .filter(Customer.store_id == store_id)
        .group_by(Customer.floor_id).all()
    )
    sales = {
        fid: (count, revenue)
        for fid, count, revenue in db.session.query(
            Sale.floor_id, func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount_cents), 0)
        )
        .filter(Sale.store_id == store_id)
        .group_by(Sale.floor_id).all()
    }

    out = []
    for floor in floors:
        sales_count, revenue = sales.get(floor.id, (0, 0))
        data = floor.to_dict()
        data.update({
            "staff_count": staff.get(floor.id, 0),
            "customer_count": customers.get(floor.id, 0),
            "sales_count": sales_count,
            "revenue_cents": int(revenue),
        })
        out.append(data)
    return out


def create_floor(*, actor, payload: dict) -> Floor:
    patch = validate_payload(model=Floor, payload=payload, policy=FLOOR_POLICY, partial=False)
    if patch["number"] < 0:
        raise ValidationError("number must be >= 0")
    exists = db.session.query(Floor.id).filter_by(store_id=actor.store_id, number=patch["number"]).first()
    if exists:
        raise ConflictError(f"Floor number {patch['number']} already exists")

    floor = Floor(store_id=actor.store_id, **patch)
    db.session.add(floor)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="FLOOR_CREATED",
        entity_type="FLOOR",
        entity_id=floor.id,
        new_data=floor.to_dict(),
    )
    db.session.commit()
    return floor
