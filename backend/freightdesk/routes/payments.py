# Overview: Flask API routes for payment reconciliation warnings.

from flask import Blueprint, request, jsonify, current_app

from ..services import payment_status_service
from ..services.job_service import JobNotFoundError, get_job, load_job_records
from ..services.receipt_service import load_receipt_records
from ..services.booking_service import load_authoritative_details


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _tolerance():
    return current_app.config.get("PAYMENT_TOLERANCE", payment_status_service.DEFAULT_TOLERANCE)


@payments_bp.get("/jobs/<int:job_id>/status")
def job_payment_status_route(job_id: int):
    """
    Reconciliation of one job's local charge and deposit collections.

    Returns:
        200: {"job_id": 1, "status": {...}, "vouchers": {...}}
    """
    try:
        job = get_job(job_id).to_record()
    except JobNotFoundError as e:
        return jsonify({"error": str(e)}), 404

    status = payment_status_service.evaluate_payment_status(
        job,
        load_job_records(),
        load_receipt_records(),
        _tolerance(),
        cost_details_by_booking=load_authoritative_details(),
    )
    return jsonify({
        "job_id": job.id,
        "status": status.to_dict(),
        "vouchers": payment_status_service.voucher_states(job),
    })


@payments_bp.get("/mismatches")
def list_mismatches_route():
    """Jobs whose collections disagree with what was billed. Query params: month, year."""
    jobs = load_job_records()
    month = request.args.get("month")
    year = request.args.get("year", type=int)

    flagged = payment_status_service.list_mismatches(
        jobs,
        load_receipt_records(),
        _tolerance(),
        load_authoritative_details(),
    )
    if month:
        flagged = [(j, s) for j, s in flagged if j.month == str(month)]
    if year:
        flagged = [(j, s) for j, s in flagged if j.year == year]

    return jsonify({
        "items": [
            {"job_id": j.id, "job_code": j.job_code, "booking": j.booking, "status": s.to_dict()}
            for j, s in flagged
        ],
        "count": len(flagged),
    })
