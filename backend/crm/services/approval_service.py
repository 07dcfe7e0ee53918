# Overview: Service-layer operations for approval workflows; request, list, and resolve.

"""
Approval Workflow Service

WHY: Threshold-crossing mutations (and mutations by staff who may only
request changes) are not applied directly. They are parked as a PENDING
ApprovalWorkflow carrying a snapshot of the previous and proposed state,
and applied by the Action Executor once a business admin approves.

STATE MACHINE:
    PENDING -> APPROVED | REJECTED | ESCALATED        (approver action)
    APPROVED -> EXECUTION_FAILED                      (executor failed; same transaction)
All non-PENDING states are terminal. CANCELLED is accepted in filters but
never produced.

TRANSACTIONS:
- Request creation and its audit entry commit together.
- Resolution, its audit entry, and the executed mutation commit together.
  The executor runs in a SAVEPOINT; if it fails, only its writes are rolled
  back and the approval is recorded as EXECUTION_FAILED.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import ActionType, ApprovalStatus, ApprovalWorkflow, Priority, User
from ..pagination import paginate
from ..validation import InvalidStateError, NotFoundError, ValidationError
from .audit_service import append_audit_log
from .concurrency import lock_for_update
from .threshold_service import get_approval_priority
from crm.time_utils import utcnow

APPROVAL_ENTITY = "APPROVAL_WORKFLOW"

RESOLUTION_ACTIONS = {
    ApprovalStatus.APPROVED.value,
    ApprovalStatus.REJECTED.value,
    ApprovalStatus.ESCALATED.value,
}

PENDING_APPROVAL = "PENDING_APPROVAL"


class ExecutionError(Exception):
    """Raised by the Action Executor when an approved mutation cannot be applied."""
    pass


def parse_action_type(value) -> ActionType:
    try:
        return ActionType(value)
    except ValueError:
        raise ValidationError(
            f"action_type must be one of: {', '.join(a.value for a in ActionType)}"
        )


def create_approval_request(
    *,
    actor,
    action_type,
    request_data: dict,
    priority: str | None = None,
    notes: str | None = None,
    commit: bool = True,
) -> ApprovalWorkflow:
    """
    File a PENDING approval and its `<ACTION_TYPE>_APPROVAL_REQUESTED` audit entry.

    priority defaults to get_approval_priority(action_type, proposed data).
    """
    action_type = parse_action_type(action_type)
    if not isinstance(request_data, dict):
        raise ValidationError("request_data must be a JSON object")

    if priority is None:
        priority = get_approval_priority(action_type, _priority_input(request_data))
    elif priority not in {p.value for p in Priority}:
        raise ValidationError(f"priority must be one of: {', '.join(p.value for p in Priority)}")

    now = utcnow()
    approval = ApprovalWorkflow(
        store_id=actor.store_id,
        action_type=action_type.value,
        requester_id=actor.id,
        status=ApprovalStatus.PENDING.value,
        priority=priority,
        request_data=request_data,
        approval_notes=notes,
        created_at=now,
        updated_at=now,
    )
    db.session.add(approval)
    db.session.flush()

    append_audit_log(
        actor=actor,
        action=f"{action_type.value}_APPROVAL_REQUESTED",
        entity_type=APPROVAL_ENTITY,
        entity_id=approval.id,
        new_data=approval.to_dict(),
    )

    if commit:
        db.session.commit()
    return approval


def _priority_input(request_data: dict) -> dict:
    proposed = request_data.get("proposed")
    return proposed if isinstance(proposed, dict) else request_data


def pending_response(approval: ApprovalWorkflow) -> dict:
    """Body returned by mutation endpoints when a change is deferred."""
    return {
        "approval_id": approval.id,
        "status": PENDING_APPROVAL,
        "approval": approval.to_dict(),
    }


def get_approval(approval_id: int, store_id: int) -> ApprovalWorkflow:
    approval = db.session.get(ApprovalWorkflow, approval_id)
    if approval is None or approval.store_id != store_id:
        raise NotFoundError("Approval not found")
    return approval


def list_approvals(
    *,
    store_id: int,
    status: str | None = None,
    action_type: str | None = None,
    priority: str | None = None,
    requester_id: int | None = None,
    page: int = 1,
    per_page: int = 20,
):
    query = db.session.query(ApprovalWorkflow).filter(ApprovalWorkflow.store_id == store_id)
    if status:
        query = query.filter(ApprovalWorkflow.status == status)
    if action_type:
        query = query.filter(ApprovalWorkflow.action_type == action_type)
    if priority:
        query = query.filter(ApprovalWorkflow.priority == priority)
    if requester_id is not None:
        query = query.filter(ApprovalWorkflow.requester_id == requester_id)
    query = query.order_by(ApprovalWorkflow.created_at.desc(), ApprovalWorkflow.id.desc())
    return paginate(query, page, per_page)


def resolve_approval(
    approval_id: int,
    action: str,
    approver_id: int,
    notes: str | None = None,
    *,
    store_id: int,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ApprovalWorkflow:
    """
    Resolve a PENDING approval exactly once.

    Order of checks (each failure leaves the row untouched):
    1. NotFoundError if no approval with this id exists in the store.
    2. ValidationError if action is not APPROVED/REJECTED/ESCALATED.
    3. InvalidStateError if it is not PENDING.
    4. NotFoundError if approver_id is not a user of the store.

    Then: set status/approver/updated_at (+approved_at), append
    `APPROVAL_<ACTION>` with old and new state, and on APPROVED run the
    Action Executor. Everything commits in one transaction.

    Returns the approval; its status is EXECUTION_FAILED when the executor
    could not apply the change.
    """
    from .action_executor import execute
    from .tenant_service import Actor

    approval = lock_for_update(
        db.session.query(ApprovalWorkflow).filter(ApprovalWorkflow.id == approval_id)
    ).first()
    if approval is None or approval.store_id != store_id:
        raise NotFoundError("Approval not found")

    if action not in RESOLUTION_ACTIONS:
        raise ValidationError(f"action must be one of: {', '.join(sorted(RESOLUTION_ACTIONS))}")

    if approval.status != ApprovalStatus.PENDING.value:
        raise InvalidStateError("Approval is not in pending status")

    approver = db.session.get(User, approver_id)
    if approver is None or approver.store_id != store_id or not approver.is_active:
        raise NotFoundError("Approver not found")

    actor = Actor(user=approver, ip_address=ip_address, user_agent=user_agent)
    old_state = approval.to_dict()

    now = utcnow()
    approval.status = action
    approval.approver_id = approver.id
    approval.updated_at = now
    if notes is not None:
        approval.approval_notes = notes
    if action == ApprovalStatus.APPROVED.value:
        approval.approved_at = now
    db.session.flush()

    append_audit_log(
        actor=actor,
        action=f"APPROVAL_{action}",
        entity_type=APPROVAL_ENTITY,
        entity_id=approval.id,
        old_data=old_state,
        new_data=approval.to_dict(),
    )

    if action == ApprovalStatus.APPROVED.value:
        savepoint = db.session.begin_nested()
        try:
            execute(approval, actor)
            savepoint.commit()
        except ExecutionError as e:
            savepoint.rollback()
            _record_execution_failure(approval, actor, str(e))

    db.session.commit()
    return approval


def _record_execution_failure(approval: ApprovalWorkflow, actor, message: str) -> None:
    current_app.logger.error(
        "Approved action failed: approval=%s action_type=%s error=%s",
        approval.id, approval.action_type, message,
    )
    before = approval.to_dict()
    approval.status = ApprovalStatus.EXECUTION_FAILED.value
    approval.execution_error = message
    approval.updated_at = utcnow()
    db.session.flush()
    append_audit_log(
        actor=actor,
        action="APPROVAL_EXECUTION_FAILED",
        entity_type=APPROVAL_ENTITY,
        entity_id=approval.id,
        old_data=before,
        new_data=approval.to_dict(),
    )
