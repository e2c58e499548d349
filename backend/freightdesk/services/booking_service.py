# Overview: Service-layer operations for bookings; groups jobs and owns the shared cost breakdown.

"""
Booking Aggregation Service

WHY: Several jobs (consolidated cargo) can ride on one shipping-line booking.
The booking view needs their combined cost/sell/profit/containers plus the
booking's own cost breakdown: the line's local-charge invoice, additional
local charges, extension costs and container deposits.

DESIGN:
- aggregate_booking() is pure: it reads a job snapshot and never mutates it.
- Legacy jobs each carry a copy of bookingCostDetails. The first job's copy
  is used unless an authoritative per-booking row is passed in. Copies on
  other jobs that disagree are reported in divergent_job_ids, never merged.
- Malformed or missing cost details degrade to zeroed defaults.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from flask import current_app

from ..extensions import db
from ..models import BookingCostDetail
from ..records import (
    BookingCostDetails,
    BookingDeposit,
    ExtensionCost,
    InvoiceLine,
    JobRecord,
)
from ..validation import enforce_rules_cost_details
from .job_service import load_job_records


class BookingNotFoundError(Exception):
    """Raised when no job carries the requested booking number."""
    pass


@dataclass
class BookingSummary:
    booking_id: str
    month: str = ""
    year: Optional[int] = None
    line: str = ""

    job_count: int = 0
    total_cost: float | int = 0
    total_sell: float | int = 0
    total_profit: float | int = 0
    total_cont20: int = 0
    total_cont40: int = 0

    jobs: list[JobRecord] = field(default_factory=list)
    cost_details: BookingCostDetails = field(default_factory=BookingCostDetails)

    divergent_job_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "bookingId": self.booking_id,
            "month": self.month,
            "year": self.year,
            "line": self.line,
            "jobCount": self.job_count,
            "totalCost": self.total_cost,
            "totalSell": self.total_sell,
            "totalProfit": self.total_profit,
            "totalCont20": self.total_cont20,
            "totalCont40": self.total_cont40,
            "jobs": [j.to_dict() for j in self.jobs],
            "costDetails": self.cost_details.to_dict(),
            "invoiceTotal": booking_invoice_total(self.cost_details),
            "extensionCostTotal": booking_extension_cost_total(self.cost_details),
            "depositTotal": booking_deposit_total(self.cost_details),
            "divergentJobIds": list(self.divergent_job_ids),
        }


# =============================================================================
# COST DETAILS
# =============================================================================

def normalize_cost_details(raw: Any) -> BookingCostDetails:
    """
    Repair a possibly partial bookingCostDetails copy.

    - absent / not an object -> all defaults
    - localCharge absent -> {invoice:'', date:'', net:0, vat:0, total:0}
    - additionalLocalCharges / extensionCosts / deposits not a list -> []

    Always returns a new object; the input is never modified.
    """
    if isinstance(raw, BookingCostDetails):
        return copy.deepcopy(raw)
    if not isinstance(raw, dict):
        return BookingCostDetails()

    local_charge = raw.get("localCharge")

    def _items(key: str, factory):
        value = raw.get(key)
        if not isinstance(value, list):
            return []
        return [factory(item) for item in value if isinstance(item, dict)]

    return BookingCostDetails(
        local_charge=InvoiceLine.from_dict(local_charge) if isinstance(local_charge, dict) else InvoiceLine(),
        additional_local_charges=_items("additionalLocalCharges", ExtensionCost.from_dict),
        extension_costs=_items("extensionCosts", ExtensionCost.from_dict),
        deposits=_items("deposits", BookingDeposit.from_dict),
    )


def invoice_amount(line: InvoiceLine) -> float | int:
    """
    Amount billed on one cost line.

    net + vat when an invoice exists; the flat total when the line is marked
    as having no invoice. Lines that only carry a total are read as total.
    """
    if line.has_invoice is False:
        return line.total
    amount = line.net + line.vat
    return amount if amount else line.total


def booking_invoice_total(details: BookingCostDetails) -> float | int:
    """Main local charge plus every additional local charge."""
    total = invoice_amount(details.local_charge)
    for line in details.additional_local_charges:
        total += invoice_amount(line)
    return total


def booking_extension_cost_total(details: BookingCostDetails) -> float | int:
    return sum((invoice_amount(line) for line in details.extension_costs), 0)


def booking_deposit_total(details: BookingCostDetails) -> float | int:
    return sum((d.amount for d in details.deposits), 0)


# =============================================================================
# AGGREGATION
# =============================================================================

def find_divergent_jobs(jobs: Iterable[JobRecord], booking_id: str) -> list[str]:
    """
    Ids of booking members whose own cost-details copy disagrees with the
    first member's. Jobs without a copy are not counted as divergent.
    """
    members = [j for j in jobs if j.booking == booking_id]
    if len(members) < 2:
        return []
    reference = normalize_cost_details(members[0].booking_cost_details)
    return [
        j.id for j in members[1:]
        if j.booking_cost_details is not None
        and normalize_cost_details(j.booking_cost_details) != reference
    ]


def aggregate_booking(
    jobs: Iterable[JobRecord],
    booking_id: str,
    cost_details: Any = None,
) -> Optional[BookingSummary]:
    """
    Summarize every job whose booking equals booking_id exactly.

    Args:
        jobs: job snapshot (not modified)
        booking_id: compared without trimming or case folding
        cost_details: authoritative breakdown for the booking; when None the
            first matching job's copy is used

    Returns:
        BookingSummary, or None when no job carries the booking
    """
    members = [j for j in jobs if j.booking == booking_id]
    if not members:
        return None

    first = members[0]
    details = normalize_cost_details(
        cost_details if cost_details is not None else first.booking_cost_details
    )

    summary = BookingSummary(
        booking_id=first.booking,
        month=first.month,
        year=first.year,
        line=first.line,
        cost_details=details,
    )

    for job in members:
        summary.job_count += 1
        summary.total_cost += job.cost
        summary.total_sell += job.sell
        summary.total_profit += job.profit
        summary.total_cont20 += job.cont20
        summary.total_cont40 += job.cont40
        summary.jobs.append(job)

    summary.divergent_job_ids = find_divergent_jobs(members, booking_id)
    return summary


def list_booking_summaries(
    jobs: Iterable[JobRecord],
    cost_details_by_booking: Optional[dict] = None,
) -> list[BookingSummary]:
    """One summary per distinct non-empty booking, in first-seen order."""
    jobs = list(jobs)
    overrides = cost_details_by_booking or {}
    seen: list[str] = []
    for job in jobs:
        if job.booking and job.booking not in seen:
            seen.append(job.booking)
    return [aggregate_booking(jobs, b, overrides.get(b)) for b in seen]


# =============================================================================
# PERSISTENCE
# =============================================================================

def get_authoritative_details(booking_id: str) -> Optional[BookingCostDetails]:
    row = db.session.query(BookingCostDetail).filter_by(booking=booking_id).first()
    return row.to_details() if row else None


def load_authoritative_details() -> dict[str, BookingCostDetails]:
    """Every stored per-booking breakdown, keyed by booking number."""
    rows = db.session.query(BookingCostDetail).all()
    return {r.booking: r.to_details() for r in rows}


def get_booking_summary(booking_id: str) -> Optional[BookingSummary]:
    """Summary built from stored jobs and the booking's authoritative breakdown."""
    return aggregate_booking(
        load_job_records(booking=booking_id),
        booking_id,
        get_authoritative_details(booking_id),
    )


def list_bookings(month: str | None = None, year: int | None = None) -> list[BookingSummary]:
    jobs = load_job_records()
    if month:
        jobs = [j for j in jobs if j.month == str(month)]
    if year:
        jobs = [j for j in jobs if j.year == year]
    return list_booking_summaries(jobs, load_authoritative_details())


def save_cost_details(booking_id: str, payload: Any) -> BookingSummary:
    """
    Store the authoritative cost breakdown for a booking.

    Totals of invoiced lines carrying net/vat are recomputed as net + vat.

    Raises:
        ValidationError: malformed payload
        BookingNotFoundError: no job carries this booking
    """
    enforce_rules_cost_details(payload)
    if not load_job_records(booking=booking_id):
        raise BookingNotFoundError(f"Booking {booking_id} not found")

    details = normalize_cost_details(payload)
    for line in [details.local_charge, *details.additional_local_charges, *details.extension_costs]:
        if line.has_invoice is not False and (line.net or line.vat):
            line.total = line.net + line.vat

    row = db.session.query(BookingCostDetail).filter_by(booking=booking_id).first()
    if row is None:
        row = BookingCostDetail(booking=booking_id)
        db.session.add(row)
    row.payload = details.to_dict()
    db.session.commit()

    current_app.logger.info("Saved cost details for booking %s", booking_id)
    return get_booking_summary(booking_id)
