# Overview: Reconciles local-charge and deposit collections on a job against what was billed.

"""
Payment Status Service

WHY: Bookkeepers collect local charges and container deposits per job, but
the line bills per booking, and one bank receipt can cover several jobs.
The job screen shows a warning when what was received does not match what
was expected.

DESIGN:
- Advisory only. Never raises for a structurally valid job and never blocks
  a save.
- A voucher number groups every job that carries it (one bank receipt can
  pay several jobs). Expected and received are both summed over the group.
- Expected local charge: each distinct booking's invoice total (main +
  additional local charges) once, or the jobs' own cost where a booking is
  not billed or the job has no booking.
- Received: every grouped job's amount, external receipts sharing the
  voucher number, and follow-up receipts on the grouped jobs.
- Diff sign: positive = surplus ("Dư"), negative = shortfall ("Thiếu").
- A side with nothing received and no voucher, or nothing expected, is
  not reconciled (diff 0).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..records import (
    ExternalReceiptRecord,
    JobRecord,
    VOUCHER_TYPES,
    voucher_state,
)
from .booking_service import (
    aggregate_booking,
    booking_deposit_total,
    booking_invoice_total,
)

DEFAULT_TOLERANCE = 1


@dataclass(frozen=True)
class PaymentStatus:
    has_mismatch: bool
    lc_diff: float | int
    deposit_diff: float | int
    lc_expected: float | int = 0
    lc_received: float | int = 0
    deposit_expected: float | int = 0
    deposit_received: float | int = 0

    def to_dict(self) -> dict:
        return {
            "hasMismatch": self.has_mismatch,
            "lcDiff": self.lc_diff,
            "depositDiff": self.deposit_diff,
            "lcExpected": self.lc_expected,
            "lcReceived": self.lc_received,
            "depositExpected": self.deposit_expected,
            "depositReceived": self.deposit_received,
            "lcNote": describe_diff(self.lc_diff),
            "depositNote": describe_diff(self.deposit_diff),
        }


def describe_diff(diff: float | int) -> str:
    if diff > 0:
        return f"Dư {abs(diff):,.0f}"
    if diff < 0:
        return f"Thiếu {abs(diff):,.0f}"
    return ""


def _voucher_group(job: JobRecord, pool: list[JobRecord], doc_no_attr: str) -> list[JobRecord]:
    """The job plus every other job carrying the same voucher number."""
    doc_no = (getattr(job, doc_no_attr) or "").strip()
    if not doc_no:
        return [job]
    return [job] + [
        other for other in pool
        if other.id != job.id and (getattr(other, doc_no_attr) or "").strip() == doc_no
    ]


def _group_expected(
    group: list[JobRecord],
    pool: list[JobRecord],
    details_by_booking: dict,
    booking_total,
    fallback_attr: str,
) -> float | int:
    """
    Billed amount for a voucher group: each distinct booking's total once,
    falling back to the members' own `fallback_attr` for unbilled bookings
    and jobs without a booking.
    """
    expected = 0
    seen: set[str] = set()
    for member in group:
        if not member.booking:
            expected += getattr(member, fallback_attr)
            continue
        if member.booking in seen:
            continue
        seen.add(member.booking)

        summary = aggregate_booking(pool, member.booking, details_by_booking.get(member.booking))
        total = booking_total(summary.cost_details) if summary else 0
        if total > 0:
            expected += total
        else:
            expected += sum(getattr(m, fallback_attr) for m in group if m.booking == member.booking)
    return expected


def _group_received(
    group: list[JobRecord],
    receipts: list[ExternalReceiptRecord],
    doc_no_attr: str,
    amount_attr: str,
    receipt_type: str,
) -> float | int:
    received = sum((getattr(m, amount_attr) or 0 for m in group), 0)

    doc_no = (getattr(group[0], doc_no_attr) or "").strip()
    if doc_no:
        for receipt in receipts:
            if receipt.doc_no.strip() == doc_no:
                received += receipt.amount

    for member in group:
        for extra in member.additional_receipts:
            if extra.type == receipt_type:
                received += extra.amount

    return received


def _reconcile(expected, received, has_voucher: bool, tolerance) -> float | int:
    if expected <= 0:
        return 0
    if received <= 0 and not has_voucher:
        return 0
    diff = received - expected
    if abs(diff) <= tolerance:
        return 0
    return diff


def evaluate_payment_status(
    job: JobRecord,
    all_jobs: Optional[Iterable[JobRecord]] = None,
    external_receipts: Optional[Iterable[ExternalReceiptRecord]] = None,
    tolerance: float | int = DEFAULT_TOLERANCE,
    cost_details=None,
    cost_details_by_booking: Optional[dict] = None,
) -> PaymentStatus:
    """
    Compare what a job collected with what it was billed.

    Args:
        job: the job being viewed
        all_jobs: job snapshot for booking totals and merged receipts
        external_receipts: standalone receipts that may share a voucher number
        tolerance: absolute difference treated as rounding noise
        cost_details: authoritative breakdown of the job's own booking
        cost_details_by_booking: authoritative breakdowns of any booking,
            needed when a voucher number spans several bookings

    Returns:
        PaymentStatus with signed lc_diff / deposit_diff
    """
    pool = list(all_jobs or [])
    if not any(j.id == job.id for j in pool):
        pool.append(job)
    receipts = list(external_receipts or [])

    details_by_booking = dict(cost_details_by_booking or {})
    if cost_details is not None and job.booking:
        details_by_booking[job.booking] = cost_details

    lc_type = VOUCHER_TYPES["LOCAL_CHARGE"]
    deposit_type = VOUCHER_TYPES["DEPOSIT"]

    lc_group = _voucher_group(job, pool, lc_type.doc_no_attr)
    deposit_group = _voucher_group(job, pool, deposit_type.doc_no_attr)

    lc_expected = _group_expected(lc_group, pool, details_by_booking, booking_invoice_total, "cost")
    deposit_expected = _group_expected(deposit_group, pool, details_by_booking, booking_deposit_total, "chi_cuoc")

    lc_received = _group_received(lc_group, receipts, lc_type.doc_no_attr, lc_type.amount_attr, "local")
    deposit_received = _group_received(
        deposit_group, receipts, deposit_type.doc_no_attr, deposit_type.amount_attr, "deposit"
    )

    lc_diff = _reconcile(lc_expected, lc_received, bool(job.amis_lc_doc_no), tolerance)
    deposit_diff = _reconcile(deposit_expected, deposit_received, bool(job.amis_deposit_doc_no), tolerance)

    return PaymentStatus(
        has_mismatch=lc_diff != 0 or deposit_diff != 0,
        lc_diff=lc_diff,
        deposit_diff=deposit_diff,
        lc_expected=lc_expected,
        lc_received=lc_received,
        deposit_expected=deposit_expected,
        deposit_received=deposit_received,
    )


def voucher_states(job: JobRecord) -> dict:
    """Explicit NOT_CREATED / PENDING / RECORDED state of every voucher on a job."""
    return {key: voucher_state(job, key).to_dict() for key in VOUCHER_TYPES}


def list_mismatches(
    jobs: Iterable[JobRecord],
    external_receipts: Optional[Iterable[ExternalReceiptRecord]] = None,
    tolerance: float | int = DEFAULT_TOLERANCE,
    cost_details_by_booking: Optional[dict] = None,
) -> list[tuple[JobRecord, PaymentStatus]]:
    jobs = list(jobs)
    receipts = list(external_receipts or [])
    flagged = []
    for job in jobs:
        status = evaluate_payment_status(
            job, jobs, receipts, tolerance, cost_details_by_booking=cost_details_by_booking
        )
        if status.has_mismatch:
            flagged.append((job, status))
    return flagged
