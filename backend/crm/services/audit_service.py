# Overview: Service-layer operations for the audit log; append and query.

"""
Audit Log Invariants (authoritative)

- Append-only: rows are never updated or deleted (ORM hooks refuse it).
- One entry per state-changing operation, including approval request and resolution.
- Entries are written inside the same DB transaction as the change they record:
  append_audit_log() only flushes; the caller commits.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..extensions import db
from ..models import AuditLog
from ..pagination import paginate
from ..validation import ValidationError


def append_audit_log(
    *,
    actor,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    old_data: Optional[dict] = None,
    new_data: Optional[dict] = None,
    store_id: int | None = None,
) -> AuditLog:
    """
    Append an audit entry attributed to actor (a tenant_service.Actor).

    - No domain logic here.
    - Flush only; commit belongs to the caller's unit of work.
    """
    if not action or not entity_type:
        raise ValidationError("action and entity_type are required")
    if len(action) > 64 or len(entity_type) > 64:
        raise ValidationError("action and entity_type must be at most 64 characters")

    entry = AuditLog(
        store_id=store_id if store_id is not None else actor.store_id,
        user_id=actor.id,
        user_role=actor.role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_data=old_data,
        new_data=new_data,
        ip_address=actor.ip_address,
        user_agent=actor.user_agent,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_audit_logs(
    *,
    store_id: int,
    user_id: int | None = None,
    user_role: str | None = None,
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[AuditLog], dict]:
    """Newest-first, tenant-scoped audit query. Date bounds are inclusive."""
    query = db.session.query(AuditLog).filter(AuditLog.store_id == store_id)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if user_role:
        query = query.filter(AuditLog.user_role == user_role)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if start is not None:
        query = query.filter(AuditLog.created_at >= start)
    if end is not None:
        query = query.filter(AuditLog.created_at <= end)

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    return paginate(query, page, per_page)
