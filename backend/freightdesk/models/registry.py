from __future__ import annotations

from ..extensions import db
from freightdesk.time_utils import to_utc_z


class Customer(db.Model):
    """Customer master data (billing party for local charge and deposits)."""
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_customers_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    mst = db.Column(db.String(32), nullable=True)  # tax code

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "mst": self.mst,
            "created_at": to_utc_z(self.created_at),
        }


class ShippingLine(db.Model):
    """Carrier (MSC, ONE, ...) that bills local charges and holds deposits."""
    __tablename__ = "shipping_lines"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_shipping_lines_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    mst = db.Column(db.String(32), nullable=True)
    item_name = db.Column(db.String(255), nullable=True)  # default cargo description

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "mst": self.mst,
            "item_name": self.item_name,
            "created_at": to_utc_z(self.created_at),
        }
