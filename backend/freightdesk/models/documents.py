from __future__ import annotations

from ..extensions import db
from ..records import ExternalReceiptRecord
from freightdesk.time_utils import to_utc_z


class DocumentSequence(db.Model):
    """
    Atomic per-prefix voucher number sequence.

    WHY: Scanning jobs for the highest NTTK/UNC number lets two sessions
    hand out the same number. Reservations go through this row instead.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("prefix", name="uq_doc_sequences_prefix"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    prefix = db.Column(db.String(16), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class ExternalReceipt(db.Model):
    """Receipt voucher not attached to any job ("thu khác")."""
    __tablename__ = "external_receipts"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    doc_no = db.Column(db.String(32), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    customer_id = db.Column(db.String(64), nullable=True)
    description = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_record(self) -> ExternalReceiptRecord:
        return ExternalReceiptRecord(
            id=str(self.id),
            doc_no=self.doc_no,
            date=self.date or "",
            amount=self.amount or 0,
            customer_id=self.customer_id or "",
            description=self.description or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "doc_no": self.doc_no,
            "date": self.date,
            "amount": self.amount,
            "customer_id": self.customer_id,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }
