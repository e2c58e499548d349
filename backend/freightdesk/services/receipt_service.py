# Overview: Service-layer operations for standalone receipts ("thu khác").

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import ExternalReceipt
from ..records import ExternalReceiptRecord
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from freightdesk.time_utils import parse_date_vn

RECEIPT_POLICY = ModelValidationPolicy(
    writable_fields={"doc_no", "date", "amount", "customer_id", "description"},
    required_on_create={"doc_no", "amount"},
)


class ReceiptNotFoundError(Exception):
    """Raised when a receipt id does not exist."""
    pass


def _normalize_date(patch: dict) -> None:
    value = patch.get("date")
    if not value or "/" not in value:
        return
    iso = parse_date_vn(value)
    if iso is None:
        raise ValidationError("date must be YYYY-MM-DD or DD/MM/YYYY")
    patch["date"] = iso


def load_receipt_records() -> list[ExternalReceiptRecord]:
    rows = db.session.query(ExternalReceipt).order_by(ExternalReceipt.id.asc()).all()
    return [r.to_record() for r in rows]


def receipt_doc_numbers() -> list[str]:
    return [doc_no for (doc_no,) in db.session.query(ExternalReceipt.doc_no).all() if doc_no]


def list_receipts(doc_no: str | None = None) -> dict:
    query = db.session.query(ExternalReceipt)
    if doc_no:
        query = query.filter(ExternalReceipt.doc_no == doc_no)
    rows = query.order_by(ExternalReceipt.id.asc()).all()
    return {"items": [r.to_dict() for r in rows], "count": len(rows)}


def create_receipt(payload: dict) -> ExternalReceipt:
    patch = validate_payload(model=ExternalReceipt, payload=payload, policy=RECEIPT_POLICY, partial=False)
    _normalize_date(patch)
    receipt = ExternalReceipt(**patch)
    db.session.add(receipt)
    db.session.commit()
    current_app.logger.info("Recorded external receipt %s", receipt.doc_no)
    return receipt


def update_receipt(receipt_id: int, payload: dict) -> ExternalReceipt:
    receipt = db.session.get(ExternalReceipt, receipt_id)
    if receipt is None:
        raise ReceiptNotFoundError(f"Receipt {receipt_id} not found")
    patch = validate_payload(model=ExternalReceipt, payload=payload, policy=RECEIPT_POLICY, partial=True)
    _normalize_date(patch)
    for key, value in patch.items():
        setattr(receipt, key, value)
    db.session.commit()
    return receipt


def delete_receipt(receipt_id: int) -> bool:
    receipt = db.session.get(ExternalReceipt, receipt_id)
    if receipt is None:
        return False
    db.session.delete(receipt)
    db.session.commit()
    return True
