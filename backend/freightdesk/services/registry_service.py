# Overview: Service-layer operations for the customer and shipping-line registries.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, ShippingLine
from ..validation import ConflictError, ModelValidationPolicy, validate_payload

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "mst"},
    required_on_create={"code", "name"},
)

SHIPPING_LINE_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "mst", "item_name"},
    required_on_create={"code", "name"},
)

POLICIES = {
    Customer: CUSTOMER_POLICY,
    ShippingLine: SHIPPING_LINE_POLICY,
}


class RegistryNotFoundError(Exception):
    """Raised when a customer or shipping line id does not exist."""
    pass


def _ensure_code_available(model, code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(model.id).filter(model.code == code)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Code {code} already exists")


def _commit(code: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Code {code} already exists")


def list_entries(model, search: str | None = None) -> dict:
    query = db.session.query(model)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(model.code.ilike(pattern) | model.name.ilike(pattern))
    rows = query.order_by(model.code.asc()).all()
    return {"items": [r.to_dict() for r in rows], "count": len(rows)}


def create_entry(model, payload: dict):
    patch = validate_payload(model=model, payload=payload, policy=POLICIES[model], partial=False)
    _ensure_code_available(model, patch["code"])
    entry = model(**patch)
    db.session.add(entry)
    _commit(patch["code"])
    return entry


def update_entry(model, entry_id: int, payload: dict):
    entry = db.session.get(model, entry_id)
    if entry is None:
        raise RegistryNotFoundError(f"{model.__name__} {entry_id} not found")
    patch = validate_payload(model=model, payload=payload, policy=POLICIES[model], partial=True)
    if "code" in patch:
        _ensure_code_available(model, patch["code"], exclude_id=entry_id)
    for key, value in patch.items():
        setattr(entry, key, value)
    _commit(entry.code)
    return entry


def delete_entry(model, entry_id: int) -> bool:
    entry = db.session.get(model, entry_id)
    if entry is None:
        return False
    db.session.delete(entry)
    db.session.commit()
    return True
