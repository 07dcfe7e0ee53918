# Overview: Pure rules deciding when a mutation needs approval and at what priority.

"""
Approval thresholds.

All money is in integer minor units (paise), so the business thresholds
below are the rupee figures x 100:

- SALE_CREATE:     amount_cents > 5,000,000            (Rs 50,000)
- DISCOUNT_APPLY:  discount_percentage > 15
- PRODUCT_UPDATE:  |new - old| / old * 100 > 10       (price change %)
- CUSTOMER_UPDATE: customer_value == "HIGH_VALUE"

Every other action type never requires approval by threshold. Missing
inputs are treated as "rule not triggered". No side effects.
"""

from __future__ import annotations

from typing import Callable

from ..models import ActionType, Priority

SALE_AMOUNT_THRESHOLD_CENTS = 5_000_000
DISCOUNT_PERCENTAGE_THRESHOLD = 15
PRODUCT_PRICE_CHANGE_THRESHOLD = 10
HIGH_VALUE_CUSTOMER = "HIGH_VALUE"

URGENT_SALE_AMOUNT_CENTS = 10_000_000
HIGH_SALE_AMOUNT_CENTS = 7_500_000

ESCALATION = "ESCALATION"


def price_change_percentage(old_price_cents: int, new_price_cents: int) -> float:
    """Absolute change as a percentage of the old price; a change from 0 is unbounded."""
    if old_price_cents == 0:
        return 0.0 if new_price_cents == 0 else float("inf")
    return abs(new_price_cents - old_price_cents) / old_price_cents * 100


def discount_percentage(amount_cents: int, discount_cents: int) -> float:
    if not amount_cents:
        return 0.0
    return discount_cents / amount_cents * 100


def _number(data: dict, key: str):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _sale_create(data: dict) -> bool:
    amount = _number(data, "amount_cents")
    return amount is not None and amount > SALE_AMOUNT_THRESHOLD_CENTS


def _discount_apply(data: dict) -> bool:
    pct = _number(data, "discount_percentage")
    return pct is not None and pct > DISCOUNT_PERCENTAGE_THRESHOLD


def _product_update(data: dict) -> bool:
    old = _number(data, "old_price_cents")
    new = _number(data, "new_price_cents")
    if old is None or new is None:
        return False
    return price_change_percentage(old, new) > PRODUCT_PRICE_CHANGE_THRESHOLD


def _customer_update(data: dict) -> bool:
    return data.get("customer_value") == HIGH_VALUE_CUSTOMER


RULES: dict[ActionType, Callable[[dict], bool]] = {
    ActionType.SALE_CREATE: _sale_create,
    ActionType.DISCOUNT_APPLY: _discount_apply,
    ActionType.PRODUCT_UPDATE: _product_update,
    ActionType.CUSTOMER_UPDATE: _customer_update,
}


def _action_type(value) -> ActionType | None:
    try:
        return ActionType(value)
    except ValueError:
        return None


def requires_approval(action_type, data: dict | None) -> bool:
    rule = RULES.get(_action_type(action_type))
    if rule is None or not data:
        return False
    return rule(data)


def get_approval_priority(action_type, data: dict | None) -> str:
    data = data or {}
    if action_type == ESCALATION:
        priority = data.get("priority")
        return priority if priority in {p.value for p in Priority} else Priority.MEDIUM.value

    if _action_type(action_type) is ActionType.SALE_CREATE:
        amount = _number(data, "amount_cents") or 0
        if amount > URGENT_SALE_AMOUNT_CENTS:
            return Priority.URGENT.value
        if amount > HIGH_SALE_AMOUNT_CENTS:
            return Priority.HIGH.value

    return Priority.MEDIUM.value
