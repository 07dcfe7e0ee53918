# Overview: Payload validation against model metadata plus small business rules.

from __future__ import annotations
from datetime import date, datetime
from crm.time_utils import parse_iso_datetime, parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Float, Integer, JSON, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 minor units)
MAX_PRICE_CENTS = 999_999_999

CUSTOMER_STATUSES = {"ACTIVE", "INACTIVE", "PROSPECT", "CONVERTED"}
CUSTOMER_VALUES = {"REGULAR", "HIGH_VALUE"}
GENDERS = {"MALE", "FEMALE", "OTHER"}
PAYMENT_METHODS = {"CASH", "CARD", "UPI", "BANK_TRANSFER", "EMI"}
SALE_STATUSES = {"PENDING", "COMPLETED", "CANCELLED", "REFUNDED"}


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level: the referenced row does not exist in the caller's store."""


class InvalidStateError(ValueError):
    """Operation not allowed from the row's current status."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Floats (weights)
    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            return d
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, JSON):
        if not isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a JSON object or array")
        return value

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_choice(patch: dict, field: str, choices: set[str]) -> None:
    if field in patch and patch[field] is not None:
        patch[field] = patch[field].upper()
        if patch[field] not in choices:
            raise ValidationError(f"{field} must be one of: {', '.join(sorted(choices))}")


def _require_money(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _require_money(patch, "price_cents")
    _require_money(patch, "cost_price_cents")
    for field in ("stock_quantity", "min_stock_level"):
        if field in patch and patch[field] is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
    if patch.get("weight_grams") is not None and patch["weight_grams"] < 0:
        raise ValidationError("weight_grams must be >= 0")
    if "images" in patch and patch["images"] is not None and not isinstance(patch["images"], list):
        raise ValidationError("images must be a list")
    if "specifications" in patch and patch["specifications"] is not None and not isinstance(patch["specifications"], dict):
        raise ValidationError("specifications must be an object")


def enforce_rules_customer(patch: dict) -> None:
    _require_choice(patch, "status", CUSTOMER_STATUSES)
    _require_choice(patch, "customer_value", CUSTOMER_VALUES)
    _require_choice(patch, "gender", GENDERS)
    if "email" in patch and patch["email"]:
        if "@" not in patch["email"]:
            raise ValidationError("email must be a valid email address")
        patch["email"] = patch["email"].lower()


def enforce_rules_sale(patch: dict) -> None:
    """
    Sale amounts are gross (before discount); discount may not exceed the amount.
    Only checks pairs present in the patch; callers re-check against the merged row.
    """
    _require_choice(patch, "payment_method", PAYMENT_METHODS)
    _require_choice(patch, "status", SALE_STATUSES)
    _require_money(patch, "amount_cents")
    _require_money(patch, "discount_cents")
    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")
    amount = patch.get("amount_cents")
    discount = patch.get("discount_cents")
    if amount is not None and discount is not None and discount > amount:
        raise ValidationError("discount_cents cannot exceed amount_cents")
