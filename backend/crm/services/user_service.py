# Overview: Service-layer operations for store staff; listing, creation, floor assignment.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Floor, User
from ..pagination import paginate
from ..validation import ValidationError
from . import auth_service
from .audit_service import append_audit_log
from .tenant_service import get_scoped


def list_users(
    *,
    store_id: int,
    role: str | None = None,
    floor_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 20,
):
    query = db.session.query(User).filter(User.store_id == store_id)
    if role:
        query = query.filter(User.role == role.upper())
    if floor_id is not None:
        query = query.filter(User.floor_id == floor_id)
    if status:
        status = status.upper()
        if status not in {"ACTIVE", "INACTIVE"}:
            raise ValidationError("status must be ACTIVE or INACTIVE")
        query = query.filter(User.is_active.is_(status == "ACTIVE"))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(like), User.email.ilike(like)))
    query = query.order_by(User.name.asc(), User.id.asc())
    return paginate(query, page, per_page)


def get_user(user_id: int, store_id: int) -> User:
    return get_scoped(User, user_id, store_id, label="User")


def create_staff_user(*, actor, payload: dict) -> User:
    missing = [f for f in ("name", "email", "password") if not payload.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    user = auth_service.create_user(
        name=payload["name"],
        email=payload["email"],
        password=payload["password"],
        store_id=actor.store_id,
        role=(payload.get("role") or "SALESPERSON").upper(),
        floor_id=payload.get("floor_id"),
        commit=False,
    )
    append_audit_log(
        actor=actor,
        action="USER_CREATED",
        entity_type="USER",
        entity_id=user.id,
        new_data=user.to_dict(),
    )
    db.session.commit()
    return user


def apply_floor_assignment(actor, user: User, floor_id: int | None) -> User:
    """Move a staff member to a floor (None unassigns). Flush only."""
    if floor_id is not None:
        get_scoped(Floor, floor_id, actor.store_id, label="Floor")
    before = user.to_dict()
    user.floor_id = floor_id
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="USER_FLOOR_ASSIGNED",
        entity_type="USER",
        entity_id=user.id,
        old_data=before,
        new_data=user.to_dict(),
    )
    return user


def assign_floor(*, actor, user_id: int, floor_id: int | None) -> User:
    user = get_user(user_id, actor.store_id)
    apply_floor_assignment(actor, user, floor_id)
    db.session.commit()
    return user
