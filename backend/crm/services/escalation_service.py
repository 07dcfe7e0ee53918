# Overview: Service-layer operations for escalations; raise, list, and advance tickets.

"""
Escalations are staff-raised issue tickets, independent of approvals.

TRANSITIONS:
    OPEN        -> IN_PROGRESS | CLOSED
    IN_PROGRESS -> RESOLVED | CLOSED
    RESOLVED    -> IN_PROGRESS (reopen) | CLOSED
    CLOSED      -> (terminal)

WHO MAY MOVE IT:
- The assignee may advance their own escalation.
- Otherwise: IN_PROGRESS and reassignment need ASSIGN, RESOLVED needs RESOLVE,
  CLOSED needs CLOSE on the escalations resource.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Escalation, EscalationStatus, Floor, Priority, User
from ..pagination import paginate
from ..permissions import Action, Resource, has_permission
from ..validation import InvalidStateError, NotFoundError, ValidationError
from .audit_service import append_audit_log
from .permission_service import require_permission
from .tenant_service import get_scoped
from .threshold_service import ESCALATION, get_approval_priority
from crm.time_utils import utcnow

S = EscalationStatus

TRANSITIONS = {
    S.OPEN.value: {S.IN_PROGRESS.value, S.CLOSED.value},
    S.IN_PROGRESS.value: {S.RESOLVED.value, S.CLOSED.value},
    S.RESOLVED.value: {S.IN_PROGRESS.value, S.CLOSED.value},
    S.CLOSED.value: set(),
}

STATUS_ACTION = {
    S.IN_PROGRESS.value: Action.ASSIGN,
    S.RESOLVED.value: Action.RESOLVE,
    S.CLOSED.value: Action.CLOSE,
}


def _priority(value) -> str:
    if value is not None and value not in {p.value for p in Priority}:
        raise ValidationError(f"priority must be one of: {', '.join(p.value for p in Priority)}")
    return get_approval_priority(ESCALATION, {"priority": value})


def create_escalation(*, actor, payload: dict) -> Escalation:
    for key in ("title", "description"):
        if payload.get(key) is not None and not isinstance(payload[key], str):
            raise ValidationError(f"{key} must be a string")
    title = (payload.get("title") or "").strip()
    description = (payload.get("description") or "").strip()
    if not title or not description:
        raise ValidationError("title and description are required")
    if len(title) > 255:
        raise ValidationError("title exceeds max length 255")

    assignee_id = payload.get("assignee_id")
    if assignee_id is not None:
        get_scoped(User, assignee_id, actor.store_id, label="Assignee")
    floor_id = payload.get("floor_id", actor.user.floor_id)
    if floor_id is not None:
        get_scoped(Floor, floor_id, actor.store_id, label="Floor")

    now = utcnow()
    escalation = Escalation(
        store_id=actor.store_id,
        floor_id=floor_id,
        title=title,
        description=description,
        priority=_priority(payload.get("priority")),
        status=S.OPEN.value,
        requester_id=actor.id,
        assignee_id=assignee_id,
        created_at=now,
        updated_at=now,
    )
    db.session.add(escalation)
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="ESCALATION_CREATED",
        entity_type="ESCALATION",
        entity_id=escalation.id,
        new_data=escalation.to_dict(),
    )
    db.session.commit()
    return escalation


def get_escalation(escalation_id: int, store_id: int, *, visible_to: int | None = None) -> Escalation:
    escalation = get_scoped(Escalation, escalation_id, store_id, label="Escalation")
    if visible_to is not None and visible_to not in (escalation.requester_id, escalation.assignee_id):
        raise NotFoundError("Escalation not found")
    return escalation


def list_escalations(
    *,
    store_id: int,
    status: str | None = None,
    priority: str | None = None,
    floor_id: int | None = None,
    visible_to: int | None = None,
    page: int = 1,
    per_page: int = 20,
):
    """visible_to limits results to escalations the user raised or is assigned."""
    query = db.session.query(Escalation).filter(Escalation.store_id == store_id)
    if status:
        query = query.filter(Escalation.status == status.upper())
    if priority:
        query = query.filter(Escalation.priority == priority.upper())
    if floor_id is not None:
        query = query.filter(Escalation.floor_id == floor_id)
    if visible_to is not None:
        query = query.filter(db.or_(Escalation.requester_id == visible_to, Escalation.assignee_id == visible_to))
    query = query.order_by(Escalation.created_at.desc(), Escalation.id.desc())
    return paginate(query, page, per_page)


def update_escalation(*, actor, escalation_id: int, payload: dict) -> Escalation:
    escalation = get_scoped(Escalation, escalation_id, actor.store_id, label="Escalation")
    status = payload.get("status")
    reassign = "assignee_id" in payload

    if status is None and not reassign:
        raise ValidationError("Nothing to update: provide status and/or assignee_id")

    if escalation.status == S.CLOSED.value:
        raise InvalidStateError("Escalation is closed")

    before = escalation.to_dict()
    is_assignee = escalation.assignee_id == actor.id

    if reassign:
        require_permission(actor.user, Resource.ESCALATIONS, Action.ASSIGN)
        if payload["assignee_id"] is not None:
            get_scoped(User, payload["assignee_id"], actor.store_id, label="Assignee")
        escalation.assignee_id = payload["assignee_id"]

    if status is not None:
        status = str(status).upper()
        if status not in TRANSITIONS:
            raise ValidationError(f"status must be one of: {', '.join(TRANSITIONS)}")
        if status not in TRANSITIONS[escalation.status]:
            raise InvalidStateError(f"Cannot move escalation from {escalation.status} to {status}")
        if not is_assignee and not has_permission(actor.role, Resource.ESCALATIONS, STATUS_ACTION[status]):
            require_permission(actor.user, Resource.ESCALATIONS, STATUS_ACTION[status])
        escalation.status = status
        if status == S.RESOLVED.value:
            escalation.resolved_at = utcnow()
        elif status == S.IN_PROGRESS.value:
            escalation.resolved_at = None

    escalation.updated_at = utcnow()
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="ESCALATION_UPDATED",
        entity_type="ESCALATION",
        entity_id=escalation.id,
        old_data=before,
        new_data=escalation.to_dict(),
    )
    db.session.commit()
    return escalation
