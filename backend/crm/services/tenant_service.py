"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every request is scoped to one store (the tenant), and cross-tenant
access must be explicitly denied.

SECURITY INVARIANTS:
1. Every authenticated request has g.store_id set
2. IDs from client input are resolved with get_scoped(), never a bare get()
3. Cross-tenant lookups answer "not found" so existence is not revealed
4. Cross-tenant attempts are logged as warnings

USAGE:
    from crm.services.tenant_service import get_scoped, current_actor

    customer = get_scoped(Customer, customer_id, g.store_id, label="Customer")
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, g, has_request_context, request

from ..extensions import db
from ..models import User
from ..validation import NotFoundError, ValidationError


class TenantAccessError(NotFoundError):
    """Raised when cross-tenant access is attempted."""
    pass


@dataclass
class Actor:
    """
    The authenticated caller of a mutation.

    Carries the request metadata that audit entries record.
    """
    user: User
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def store_id(self) -> int:
        return self.user.store_id

    @property
    def role(self) -> str:
        return self.user.role


def current_actor() -> Actor:
    """Build an Actor from g.current_user and the request headers."""
    user = getattr(g, "current_user", None)
    if user is None:
        raise TenantAccessError("Tenant context not established")
    ip_address = None
    user_agent = None
    if has_request_context():
        forwarded = request.headers.get("X-Forwarded-For")
        ip_address = forwarded.split(",")[0].strip() if forwarded else request.remote_addr
        user_agent = request.headers.get("User-Agent")
    # Truncate to the audit_logs column widths.
    if ip_address:
        ip_address = ip_address[:64]
    if user_agent:
        user_agent = user_agent[:255]
    return Actor(user=user, ip_address=ip_address, user_agent=user_agent)


def _log_cross_tenant_attempt(label: str, row_id, store_id: int) -> None:
    user = getattr(g, "current_user", None)
    current_app.logger.warning(
        "Cross-tenant access denied: %s %s requested from store %s by user %s",
        label,
        row_id,
        store_id,
        user.id if user else None,
    )


def get_scoped(model, row_id, store_id: int, *, label: str | None = None):
    """
    Load a store-owned row by primary key inside the tenant.

    Raises TenantAccessError (a NotFoundError) when the row is missing or
    belongs to another store, and ValidationError when row_id is not an integer.
    """
    label = label or model.__name__
    if row_id is None:
        raise NotFoundError(f"{label} not found")
    if isinstance(row_id, bool) or not isinstance(row_id, int):
        raise ValidationError(f"{label} id must be an integer")
    row = db.session.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{label} not found")
    if row.store_id != store_id:
        _log_cross_tenant_attempt(label, row_id, store_id)
        raise TenantAccessError(f"{label} not found")
    return row
