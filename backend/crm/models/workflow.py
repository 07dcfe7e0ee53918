from __future__ import annotations

from enum import Enum

from sqlalchemy import event

from ..extensions import db
from crm.time_utils import to_utc_z


class ActionType(str, Enum):
    """Mutations that can be deferred to an approver."""
    CUSTOMER_CREATE = "CUSTOMER_CREATE"
    CUSTOMER_UPDATE = "CUSTOMER_UPDATE"
    SALE_CREATE = "SALE_CREATE"
    SALE_UPDATE = "SALE_UPDATE"
    SALE_DELETE = "SALE_DELETE"
    PRODUCT_UPDATE = "PRODUCT_UPDATE"
    DISCOUNT_APPLY = "DISCOUNT_APPLY"
    FLOOR_ASSIGNMENT = "FLOOR_ASSIGNMENT"


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"
    # No transition produces CANCELLED; kept so stored rows and filters accept it.
    CANCELLED = "CANCELLED"
    EXECUTION_FAILED = "EXECUTION_FAILED"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class EscalationStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class ApprovalWorkflow(db.Model):
    """
    Deferred mutation awaiting sign-off.

    request_data is an opaque JSON snapshot of the intended change:
    {"entity_id", "previous", "proposed", "reasons"} for requests raised by
    mutation endpoints; manual requests may carry any object.

    WHY: Rows are never deleted. Status moves PENDING -> terminal exactly once
    (see approval_service.resolve_approval).
    """
    __tablename__ = "approval_workflows"
    __table_args__ = (
        db.Index("ix_approval_workflows_store_status", "store_id", "status"),
        db.Index("ix_approval_workflows_requester", "requester_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    action_type = db.Column(db.String(32), nullable=False)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    priority = db.Column(db.String(10), nullable=False, default=Priority.MEDIUM.value)
    request_data = db.Column(db.JSON, nullable=False)
    approval_notes = db.Column(db.Text, nullable=True)
    execution_error = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    requester = db.relationship("User", foreign_keys=[requester_id])
    approver = db.relationship("User", foreign_keys=[approver_id])

    def __repr__(self) -> str:
        return f"<ApprovalWorkflow id={self.id} action_type={self.action_type} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "action_type": self.action_type,
            "requester_id": self.requester_id,
            "approver_id": self.approver_id,
            "status": self.status,
            "priority": self.priority,
            "request_data": self.request_data,
            "approval_notes": self.approval_notes,
            "execution_error": self.execution_error,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "approved_at": to_utc_z(self.approved_at),
        }


class Escalation(db.Model):
    """
    Staff-raised issue ticket, independent of approvals.

    Lifecycle: OPEN -> IN_PROGRESS -> RESOLVED -> CLOSED (CLOSED is terminal).
    """
    __tablename__ = "escalations"
    __table_args__ = (
        db.Index("ix_escalations_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    priority = db.Column(db.String(10), nullable=False, default=Priority.MEDIUM.value)
    status = db.Column(db.String(20), nullable=False, default=EscalationStatus.OPEN.value)
    requester_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    requester = db.relationship("User", foreign_keys=[requester_id])
    assignee = db.relationship("User", foreign_keys=[assignee_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "floor_id": self.floor_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "requester_id": self.requester_id,
            "assignee_id": self.assignee_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "resolved_at": to_utc_z(self.resolved_at),
        }


@event.listens_for(ApprovalWorkflow, "before_delete")
def _refuse_approval_delete(mapper, connection, target):
    raise RuntimeError("Approval workflows are retained for audit and cannot be deleted")
