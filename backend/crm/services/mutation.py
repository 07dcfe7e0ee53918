# Overview: Shared result type and helpers for mutations that may be deferred to an approver.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ..models import ApprovalWorkflow

REASON_REQUESTER_CANNOT_COMMIT = "requester_cannot_commit"
REASON_AMOUNT_THRESHOLD = "amount_threshold"
REASON_DISCOUNT_THRESHOLD = "discount_threshold"
REASON_PRICE_CHANGE_THRESHOLD = "price_change_threshold"
REASON_HIGH_VALUE_CUSTOMER = "high_value_customer"


@dataclass
class MutationResult:
    """Either the applied entity (direct path) or the filed approval (pending path)."""
    entity: Any = None
    approval: ApprovalWorkflow | None = None
    reasons: list[str] = field(default_factory=list)

    @property
    def pending(self) -> bool:
        return self.approval is not None


def json_safe(data: dict) -> dict:
    """Copy of data with dates serialised so it can live in a JSON column."""
    out = {}
    for k, v in data.items():
        if isinstance(v, datetime):
            out[k] = v.isoformat()
        elif isinstance(v, date):
            out[k] = v.isoformat()
        else:
            out[k] = v
    return out


def request_payload(*, entity_id, previous, proposed, reasons) -> dict:
    return {
        "entity_id": entity_id,
        "previous": previous,
        "proposed": json_safe(proposed) if proposed is not None else None,
        "reasons": reasons,
    }
