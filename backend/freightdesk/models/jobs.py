from __future__ import annotations

from ..extensions import db
from ..records import BookingCostDetails, JobRecord
from freightdesk.time_utils import to_utc_z


class Job(db.Model):
    """
    One shipment/freight job.

    The full camelCase record lives in `payload`; the columns beside it are
    copies of the keys we filter on. `id` is never reused.
    """
    __tablename__ = "jobs"
    __table_args__ = (
        db.UniqueConstraint("job_code", name="uq_jobs_job_code"),
        db.Index("ix_jobs_year_month", "year", "month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    job_code = db.Column(db.String(64), nullable=False)
    booking = db.Column(db.String(64), nullable=True, index=True)
    month = db.Column(db.String(2), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    line = db.Column(db.String(64), nullable=True)
    customer_id = db.Column(db.String(64), nullable=True, index=True)

    payload = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def apply_record(self, record: JobRecord) -> None:
        data = record.to_dict()
        data.pop("id", None)
        self.payload = data
        self.job_code = record.job_code
        self.booking = record.booking or None
        self.month = record.month or None
        self.year = record.year
        self.line = record.line or None
        self.customer_id = record.customer_id or None

    def to_record(self) -> JobRecord:
        data = dict(self.payload or {})
        data["id"] = str(self.id)
        return JobRecord.from_dict(data)

    def to_dict(self) -> dict:
        out = self.to_record().to_dict()
        out["createdAt"] = to_utc_z(self.created_at)
        out["updatedAt"] = to_utc_z(self.updated_at)
        return out


class BookingCostDetail(db.Model):
    """
    Authoritative cost breakdown for a booking.

    Older job payloads each carry their own `bookingCostDetails` copy; this
    row supersedes them once written.
    """
    __tablename__ = "booking_cost_details"
    __table_args__ = (
        db.UniqueConstraint("booking", name="uq_booking_cost_details_booking"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    booking = db.Column(db.String(64), nullable=False)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_details(self) -> BookingCostDetails:
        return BookingCostDetails.from_dict(self.payload or {})
