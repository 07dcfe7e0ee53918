# Overview: Applies the deferred mutation of an approved ApprovalWorkflow.

"""
Action Executor

Dispatches on ApprovalWorkflow.action_type through HANDLERS, which has one
entry per ActionType. Handlers re-validate the stored request_data (it was
captured at request time and the world may have moved on), apply the change
through the same apply_* functions the direct path uses, and append the
entity's own audit entry attributed to the approver.

Any failure is raised as ExecutionError; approval_service.resolve_approval
rolls back the handler's writes and marks the approval EXECUTION_FAILED.
Handlers flush but never commit.
"""

from __future__ import annotations

from typing import Callable

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from ..models import ActionType, ApprovalWorkflow, Customer, Product, Sale, User
from ..validation import ConflictError, NotFoundError, ValidationError
from .approval_service import ExecutionError
from .customer_service import apply_customer_create, apply_customer_update, clean_customer_payload
from .permission_service import PermissionDeniedError
from .products_service import apply_product_update, clean_product_payload
from .sales_service import apply_sale_create, apply_sale_delete, apply_sale_update, clean_sale_payload
from .tenant_service import get_scoped
from .user_service import apply_floor_assignment


def _proposed(approval: ApprovalWorkflow) -> dict:
    data = approval.request_data or {}
    proposed = data.get("proposed")
    if not isinstance(proposed, dict):
        raise ExecutionError("request_data.proposed must be an object")
    return proposed


def _target(approval: ApprovalWorkflow, model, label: str):
    entity_id = (approval.request_data or {}).get("entity_id")
    if entity_id is None:
        raise ExecutionError("request_data.entity_id is required")
    return get_scoped(model, entity_id, approval.store_id, label=label)


def _customer_create(approval, actor):
    patch = clean_customer_payload(_proposed(approval), partial=False)
    return apply_customer_create(actor, patch)


def _customer_update(approval, actor):
    customer = _target(approval, Customer, "Customer")
    patch = clean_customer_payload(_proposed(approval), partial=True)
    return apply_customer_update(actor, customer, patch)


def _sale_create(approval, actor):
    proposed = {k: v for k, v in _proposed(approval).items() if k != "total_amount_cents"}
    patch = clean_sale_payload(proposed, partial=False)
    return apply_sale_create(actor, patch)


def _sale_update(approval, actor):
    sale = _target(approval, Sale, "Sale")
    patch = clean_sale_payload(_proposed(approval), partial=True)
    return apply_sale_update(actor, sale, patch)


def _sale_delete(approval, actor):
    sale = _target(approval, Sale, "Sale")
    apply_sale_delete(actor, sale)


def _product_update(approval, actor):
    product = _target(approval, Product, "Product")
    patch = clean_product_payload(_proposed(approval), partial=True)
    return apply_product_update(actor, product, patch)


def _discount_apply(approval, actor):
    # Discounts are carried on the sale itself; approving one records the decision only.
    current_app.logger.info("Discount approval %s recorded; no separate mutation", approval.id)


def _floor_assignment(approval, actor):
    user = _target(approval, User, "User")
    proposed = _proposed(approval)
    if "floor_id" not in proposed:
        raise ExecutionError("request_data.proposed.floor_id is required")
    return apply_floor_assignment(actor, user, proposed["floor_id"])


HANDLERS: dict[ActionType, Callable] = {
    ActionType.CUSTOMER_CREATE: _customer_create,
    ActionType.CUSTOMER_UPDATE: _customer_update,
    ActionType.SALE_CREATE: _sale_create,
    ActionType.SALE_UPDATE: _sale_update,
    ActionType.SALE_DELETE: _sale_delete,
    ActionType.PRODUCT_UPDATE: _product_update,
    ActionType.DISCOUNT_APPLY: _discount_apply,
    ActionType.FLOOR_ASSIGNMENT: _floor_assignment,
}


def execute(approval: ApprovalWorkflow, actor):
    """Apply the approved change. Raises ExecutionError on any failure."""
    try:
        action_type = ActionType(approval.action_type)
    except ValueError:
        raise ExecutionError(f"Unknown action type: {approval.action_type}")

    handler = HANDLERS[action_type]
    try:
        return handler(approval, actor)
    except ExecutionError:
        raise
    except (ValidationError, ConflictError, NotFoundError, PermissionDeniedError) as e:
        raise ExecutionError(str(e)) from e
    except (IntegrityError, StaleDataError) as e:
        raise ExecutionError(f"Database rejected the change: {e.__class__.__name__}") from e
