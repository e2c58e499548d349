# Overview: Service-layer operations for jobs; validation, voucher locks and persistence.

"""
Job Registry Service

WHY: Every booking summary, voucher number and reconciliation is derived
from the job collection, so writes to it are the one place where the
collection's rules are enforced.

DESIGN:
- Writes merge the incoming camelCase payload onto the stored record.
  Keys the client omits keep their stored value, including accounting
  voucher fields on the job and on each extension (the UI often saves a
  stale copy that lacks vouchers written from another screen).
- profit is always sell - cost when either operand is written.
- Once a voucher has a doc no, the money fields it covers are frozen until
  the same write clears the doc no.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Job
from ..records import (
    AMIS_EXTENSION_WIRE_KEYS,
    JobRecord,
    VOUCHER_TYPES,
    to_number,
)
from ..validation import ConflictError, ValidationError, enforce_rules_job
from .concurrency import lock_for_update, run_with_retry


class JobNotFoundError(Exception):
    """Raised when a job id does not exist."""
    pass


# =============================================================================
# QUERIES
# =============================================================================

def get_job(job_id: int) -> Job:
    job = db.session.get(Job, job_id)
    if job is None:
        raise JobNotFoundError(f"Job {job_id} not found")
    return job


def load_job_records(booking: str | None = None) -> list[JobRecord]:
    """Snapshot of the job collection (optionally one booking) in insertion order."""
    query = db.session.query(Job)
    if booking is not None:
        query = query.filter(Job.booking == booking)
    return [job.to_record() for job in query.order_by(Job.id.asc()).all()]


def list_jobs(
    month: str | None = None,
    year: int | None = None,
    booking: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Job listing with optional filters and pagination.

    Args:
        month: "1".."12" as stored on the job
        year: four-digit year
        booking: exact booking number
        search: substring of job code or booking (case-insensitive)
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 50, max 500)
    """
    base_query = db.session.query(Job)
    if month:
        base_query = base_query.filter(Job.month == str(month))
    if year:
        base_query = base_query.filter(Job.year == year)
    if booking is not None:
        base_query = base_query.filter(Job.booking == booking)
    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(or_(Job.job_code.ilike(pattern), Job.booking.ilike(pattern)))
    base_query = base_query.order_by(Job.id.asc())

    if page is None:
        jobs = base_query.all()
        return {
            "items": [j.to_dict() for j in jobs],
            "count": len(jobs),
        }

    per_page = min(per_page or 50, 500)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    jobs = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [j.to_dict() for j in jobs],
        "count": len(jobs),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


# =============================================================================
# MERGE RULES
# =============================================================================

def _preserve_extension_vouchers(stored: list, incoming: list) -> list:
    stored_by_id = {e.get("id"): e for e in stored if isinstance(e, dict) and e.get("id")}
    merged = []
    for ext in incoming:
        if not isinstance(ext, dict):
            raise ValidationError("extensions must be a list of objects")
        existing = stored_by_id.get(ext.get("id"))
        if existing is None:
            merged.append(ext)
            continue
        ext = dict(ext)
        for key in AMIS_EXTENSION_WIRE_KEYS:
            if key not in ext and key in existing:
                ext[key] = existing[key]
        merged.append(ext)
    return merged


def merge_job_payload(stored: dict | None, payload: dict) -> dict:
    """
    Merge an incoming payload onto the stored camelCase job dict.

    Returns a new dict; neither argument is modified.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    merged = dict(stored or {})
    for key, value in payload.items():
        if key in ("id", "createdAt", "updatedAt"):
            continue
        merged[key] = value

    if stored and isinstance(payload.get("extensions"), list):
        merged["extensions"] = _preserve_extension_vouchers(stored.get("extensions") or [], payload["extensions"])

    enforce_rules_job(merged)

    if "cost" in payload or "sell" in payload:
        merged["profit"] = to_number(merged.get("sell")) - to_number(merged.get("cost"))

    return merged


def check_voucher_locks(before: JobRecord, after: JobRecord) -> None:
    """Reject changes to money fields covered by an already-numbered voucher."""
    before_dict = before.to_dict()
    after_dict = after.to_dict()
    for vt in VOUCHER_TYPES.values():
        doc_no = getattr(before, vt.doc_no_attr)
        if not doc_no or getattr(after, vt.doc_no_attr) != doc_no:
            continue
        for key in vt.locked_fields:
            if to_number(before_dict.get(key)) != to_number(after_dict.get(key)):
                raise ConflictError(f"{key} is locked by voucher {doc_no}; clear the voucher before editing")


def _ensure_code_available(job_code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Job.id).filter(Job.job_code == job_code)
    if exclude_id is not None:
        query = query.filter(Job.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Job code {job_code} already exists")


def _stage_create(payload: dict) -> Job:
    merged = merge_job_payload(None, payload)
    if "profit" not in payload:
        merged["profit"] = to_number(merged.get("sell")) - to_number(merged.get("cost"))
    record = JobRecord.from_dict(merged)
    _ensure_code_available(record.job_code)

    job = Job()
    job.apply_record(record)
    db.session.add(job)
    db.session.flush()
    return job


def _stage_update(job: Job, payload: dict) -> Job:
    before = job.to_record()
    stored = before.to_dict()
    stored.pop("id", None)

    merged = merge_job_payload(stored, payload)
    after = JobRecord.from_dict(merged)

    check_voucher_locks(before, after)
    if after.job_code != before.job_code:
        _ensure_code_available(after.job_code, exclude_id=job.id)

    job.apply_record(after)
    db.session.flush()
    return job


def _commit():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Job code already exists")


# =============================================================================
# WRITES
# =============================================================================

def create_job(payload: dict) -> Job:
    """
    Create a job from a camelCase payload.

    Raises:
        ValidationError: bad jobCode, negative container counts, non-numeric money
        ConflictError: jobCode already used
    """
    def _op():
        job = _stage_create(payload)
        _commit()
        current_app.logger.info("Created job %s (%s)", job.id, job.job_code)
        return job

    return run_with_retry(_op)


def update_job(job_id: int, payload: dict) -> Job:
    """
    Merge a camelCase payload onto an existing job.

    Raises:
        JobNotFoundError: unknown id
        ValidationError: invalid fields
        ConflictError: duplicate jobCode or edit of a voucher-locked amount
    """
    def _op():
        job = lock_for_update(db.session.query(Job).filter(Job.id == job_id)).first()
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        _stage_update(job, payload)
        _commit()
        return job

    return run_with_retry(_op)


def delete_job(job_id: int) -> bool:
    job = db.session.get(Job, job_id)
    if job is None:
        return False
    db.session.delete(job)
    db.session.commit()
    current_app.logger.info("Deleted job %s (%s)", job_id, job.job_code)
    return True


def import_jobs(rows: list) -> dict:
    """
    Upsert jobs by jobCode (spreadsheet / backup import).

    Existing jobs keep their extensions and booking cost details; every
    other supplied key overwrites. Invalid rows are reported, not fatal.
    """
    if not isinstance(rows, list):
        raise ValidationError("Import payload must be a list of jobs")

    added = 0
    updated = 0
    errors: list[dict] = []

    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            errors.append({"row": index, "error": "Row must be an object"})
            continue
        code = str(row.get("jobCode") or "").strip()
        try:
            with db.session.begin_nested():
                existing = db.session.query(Job).filter(Job.job_code == code).first() if code else None
                if existing is None:
                    _stage_create(row)
                    added += 1
                else:
                    patch = {k: v for k, v in row.items() if k not in ("extensions", "bookingCostDetails")}
                    _stage_update(existing, patch)
                    updated += 1
        except (ValidationError, ConflictError) as exc:
            errors.append({"row": index, "jobCode": code, "error": str(exc)})

    _commit()
    current_app.logger.info("Imported jobs: %s added, %s updated, %s rejected", added, updated, len(errors))
    return {"added": added, "updated": updated, "errors": errors}
