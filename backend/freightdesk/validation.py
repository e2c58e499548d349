from __future__ import annotations
import re

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Float, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# VND amounts above 1e12 are typing mistakes, not freight charges
MAX_AMOUNT = 1_000_000_000_000

_WHITESPACE = re.compile(r"\s")

JOB_MONEY_FIELDS = (
    "cost", "sell", "profit",
    "feeCic", "feeKimberry", "feePsc", "feeEmc", "feeOther",
    "chiPayment", "chiCuoc",
    "localChargeNet", "localChargeVat", "localChargeTotal",
    "thuCuoc",
    "amisExtensionPaymentAmount", "amisLcAmount", "amisDepositAmount", "amisDepositRefundAmount",
)

JOB_COUNT_FIELDS = ("cont20", "cont40")

JOB_LIST_FIELDS = ("extensions", "additionalReceipts", "refunds")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate job code)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_number(key: str, value: Any) -> float | int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be a number")
        return int(number) if number.is_integer() else number
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, (Float, Numeric)):
        return _coerce_number(col.key, value)

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
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

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


def normalize_job_code(value: Any) -> str:
    """Job codes are printed on B/L paperwork: trimmed, no inner whitespace."""
    code = "" if value is None else str(value).strip()
    if not code:
        raise ValidationError("jobCode is required")
    if _WHITESPACE.search(code):
        raise ValidationError("jobCode must not contain whitespace")
    if len(code) > 64:
        raise ValidationError("jobCode exceeds max length 64")
    return code


def enforce_rules_job(data: dict) -> dict:
    """
    Business rules for a merged (camelCase) job dict.

    Mutates and returns `data` with coerced numbers and the normalized code.
    """
    data["jobCode"] = normalize_job_code(data.get("jobCode"))

    for key in JOB_MONEY_FIELDS:
        if data.get(key) is None or data.get(key) == "":
            continue
        amount = _coerce_number(key, data[key])
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT:,}")
        data[key] = amount

    for key in JOB_COUNT_FIELDS:
        raw = data.get(key)
        if raw is None or raw == "":
            data[key] = 0
            continue
        count = _coerce_number(key, raw)
        if not float(count).is_integer():
            raise ValidationError(f"{key} must be a whole number")
        if count < 0:
            raise ValidationError(f"{key} must be >= 0")
        data[key] = int(count)

    for key in JOB_LIST_FIELDS:
        if data.get(key) is not None and not isinstance(data[key], list):
            raise ValidationError(f"{key} must be a list")

    details = data.get("bookingCostDetails")
    if details is not None and not isinstance(details, dict):
        raise ValidationError("bookingCostDetails must be an object")

    return data


def enforce_rules_cost_details(payload: Any) -> dict:
    """Shape checks for a booking cost breakdown before it becomes authoritative."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    local_charge = payload.get("localCharge")
    if local_charge is not None and not isinstance(local_charge, dict):
        raise ValidationError("localCharge must be an object")
    for key in ("additionalLocalCharges", "extensionCosts", "deposits"):
        items = payload.get(key)
        if items is None:
            continue
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ValidationError(f"{key} must be a list of objects")
    return payload
