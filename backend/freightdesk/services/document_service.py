# Overview: Service-layer operations for accounting voucher numbers (NTTK..., UNC...).

"""
Voucher Number Service

WHY: Receipts (NTTK) and payment orders (UNC) are exported to the AMIS
accounting system, which rejects a voucher number it has already seen.
The format is PREFIX + zero-padded decimal and must stay byte-for-byte.

DESIGN:
- allocate_next_doc_no() scans every voucher number in a job snapshot
  (plus reserved/in-flight numbers) and returns max + 1. Pure and
  deterministic: two callers on the same snapshot get the same answer.
- reserve_doc_no() closes that gap with a DocumentSequence row per prefix,
  bumped atomically and never allowed below the scanned maximum.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from flask import current_app
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from ..records import (
    BookingCostDetails,
    ExternalReceiptRecord,
    JobRecord,
    VOUCHER_TYPES,
)
from .concurrency import run_with_retry
from .job_service import load_job_records
from .receipt_service import receipt_doc_numbers


DOC_PREFIX_RECEIPT = "NTTK"  # phiếu thu / nộp tiền vào tài khoản
DOC_PREFIX_PAYMENT = "UNC"   # ủy nhiệm chi
DEFAULT_DOC_WIDTH = 5

_PREFIX_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{0,15}$")


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def validate_prefix(prefix: str) -> str:
    if not prefix or not _PREFIX_RE.match(prefix):
        raise DocumentSequenceError("prefix must be 1-16 letters/digits starting with a letter")
    return prefix


def _doc_no_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(prefix)}([0-9]+)$", re.IGNORECASE)


def parse_doc_no(value: Optional[str], prefix: str) -> Optional[int]:
    """Numeric suffix of `value` under `prefix`, or None if it is not one."""
    if not value:
        return None
    match = _doc_no_pattern(prefix).match(value)
    if not match:
        return None
    return int(match.group(1))


def format_doc_no(prefix: str, number: int, width: int = DEFAULT_DOC_WIDTH) -> str:
    return f"{prefix}{str(number).zfill(width)}"


def iter_job_doc_numbers(job: JobRecord) -> Iterator[tuple[str, str]]:
    """
    Yield (source, doc_no) for every voucher number held by a job.

    Covers the six job-level voucher fields, extension receipts, refunds,
    additional receipts and payment slips recorded on the booking's
    extension/additional cost lines.
    """
    for vt in VOUCHER_TYPES.values():
        value = getattr(job, vt.doc_no_attr)
        if value:
            yield vt.doc_no_key, value

    for ext in job.extensions:
        if ext.amis_doc_no:
            yield f"extensions[{ext.id}].amisDocNo", ext.amis_doc_no

    for refund in job.refunds:
        if refund.doc_no:
            yield f"refunds[{refund.id}].docNo", refund.doc_no

    for receipt in job.additional_receipts:
        if receipt.doc_no:
            yield f"additionalReceipts[{receipt.id}].docNo", receipt.doc_no

    raw = job.booking_cost_details
    if isinstance(raw, dict):
        details = BookingCostDetails.from_dict(raw)
        for key, lines in (
            ("additionalLocalCharges", details.additional_local_charges),
            ("extensionCosts", details.extension_costs),
        ):
            for line in lines:
                if line.amis_doc_no:
                    yield f"bookingCostDetails.{key}[{line.id}].amisDocNo", line.amis_doc_no


def max_doc_number(
    jobs: Iterable[JobRecord],
    prefix: str,
    extra_doc_nos: Optional[Iterable[str]] = None,
) -> int:
    """Highest numeric suffix in use under `prefix`; 0 when none match."""
    highest = 0

    def _check(value: Optional[str]) -> None:
        nonlocal highest
        number = parse_doc_no(value, prefix)
        if number is not None and number > highest:
            highest = number

    for job in jobs:
        for _, value in iter_job_doc_numbers(job):
            _check(value)

    for value in extra_doc_nos or ():
        _check(value)

    return highest


def allocate_next_doc_no(
    jobs: Iterable[JobRecord],
    prefix: str,
    width: int = DEFAULT_DOC_WIDTH,
    extra_doc_nos: Optional[Iterable[str]] = None,
) -> str:
    """
    Next unused voucher number for `prefix` in a job snapshot.

    Args:
        jobs: job snapshot (not modified)
        prefix: e.g. "NTTK" or "UNC" (matched case-insensitively)
        width: zero-padding of the numeric part
        extra_doc_nos: numbers chosen in the current session but not yet
            saved to a job, and external receipt numbers

    Returns:
        prefix + (max + 1) left-padded to `width`, e.g. "NTTK00006"
    """
    return format_doc_no(prefix, max_doc_number(jobs, prefix, extra_doc_nos) + 1, width)


def find_doc_no_owners(
    jobs: Iterable[JobRecord],
    doc_no: str,
    receipts: Iterable[ExternalReceiptRecord] = (),
) -> list[dict]:
    """Every job field and external receipt currently holding `doc_no`."""
    wanted = doc_no.strip().upper()
    owners = []
    for job in jobs:
        for source, value in iter_job_doc_numbers(job):
            if value.strip().upper() == wanted:
                owners.append({"kind": "job", "job_id": job.id, "job_code": job.job_code, "field": source})
    for receipt in receipts:
        if receipt.doc_no.strip().upper() == wanted:
            owners.append({"kind": "receipt", "receipt_id": receipt.id, "field": "doc_no"})
    return owners


def reserve_doc_no(
    prefix: str,
    width: int = DEFAULT_DOC_WIDTH,
    extra_doc_nos: Optional[Iterable[str]] = None,
) -> str:
    """
    Atomically reserve the next voucher number for a prefix.

    The sequence is floored at the highest number found in stored jobs,
    external receipts and `extra_doc_nos`, so numbers typed in by hand are
    never handed out again. Unlike allocate_next_doc_no(), two calls never
    return the same number.
    """
    validate_prefix(prefix)
    key = prefix.upper()
    extra = list(extra_doc_nos or [])

    def _op() -> str:
        floor = max_doc_number(load_job_records(), prefix, [*receipt_doc_numbers(), *extra])

        stmt = (
            update(DocumentSequence)
            .where(DocumentSequence.prefix == key)
            .values(
                next_number=case(
                    (DocumentSequence.next_number > floor, DocumentSequence.next_number),
                    else_=floor + 1,
                ) + 1
            )
            .execution_options(synchronize_session=False)
        )

        result = db.session.execute(stmt)
        if result.rowcount:
            db.session.flush()
            current = (
                db.session.query(DocumentSequence.next_number)
                .filter_by(prefix=key)
                .scalar()
            )
            number = current - 1
        else:
            seq = DocumentSequence(prefix=key, next_number=floor + 2)
            db.session.add(seq)
            try:
                db.session.flush()
                number = floor + 1
            except IntegrityError:
                db.session.rollback()
                result = db.session.execute(stmt)
                if not result.rowcount:
                    raise
                db.session.flush()
                current = (
                    db.session.query(DocumentSequence.next_number)
                    .filter_by(prefix=key)
                    .scalar()
                )
                number = current - 1

        db.session.commit()
        doc_no = format_doc_no(prefix, number, width)
        current_app.logger.info("Reserved voucher number %s", doc_no)
        return doc_no

    return run_with_retry(_op)


def last_reserved_doc_no(prefix: str, width: int = DEFAULT_DOC_WIDTH) -> Optional[str]:
    """Highest number reserve_doc_no() has handed out for `prefix`, if any."""
    next_number = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(prefix=prefix.upper())
        .scalar()
    )
    if not next_number or next_number <= 1:
        return None
    return format_doc_no(prefix, next_number - 1, width)


def preview_next_doc_no(
    prefix: str,
    width: int = DEFAULT_DOC_WIDTH,
    extra_doc_nos: Optional[Iterable[str]] = None,
) -> str:
    """
    Number the next reservation would most likely return, without reserving.

    Considers stored jobs, external receipts, numbers already reserved
    through the sequence and `extra_doc_nos`.
    """
    validate_prefix(prefix)
    extra = [*receipt_doc_numbers(), *(extra_doc_nos or [])]
    reserved = last_reserved_doc_no(prefix, width)
    if reserved:
        extra.append(reserved)
    return allocate_next_doc_no(load_job_records(), prefix, width, extra)
