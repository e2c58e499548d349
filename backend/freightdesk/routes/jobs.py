# Overview: Flask API routes for jobs; parses input and returns JSON responses.

# backend/freightdesk/routes/jobs.py
"""
Job API Routes

Jobs are exchanged in the camelCase shape the accounting UI uses
(jobCode, booking, localChargeTotal, amisLcDocNo, extensions, ...).

Errors:
    400: invalid payload (bad jobCode, negative container count, ...)
    404: unknown job id
    409: duplicate jobCode or edit of a voucher-locked amount
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import job_service
from ..services.job_service import JobNotFoundError
from ..validation import ValidationError, ConflictError


jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


@jobs_bp.get("")
def list_jobs_route():
    """
    List jobs.

    Query params:
    - month: "1".."12"
    - year: int
    - booking: exact booking number
    - q: job code / booking substring
    - page, per_page: optional pagination
    """
    return job_service.list_jobs(
        month=request.args.get("month"),
        year=request.args.get("year", type=int),
        booking=request.args.get("booking"),
        search=request.args.get("q"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@jobs_bp.post("")
def create_job_route():
    payload = request.get_json(silent=True)
    try:
        job = job_service.create_job(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create job")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(job.to_dict()), 201


@jobs_bp.get("/<int:job_id>")
def get_job_route(job_id: int):
    try:
        job = job_service.get_job(job_id)
    except JobNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(job.to_dict())


@jobs_bp.put("/<int:job_id>")
def update_job_route(job_id: int):
    """
    Update a job. Omitted keys keep their stored values.

    Request body: any subset of the job's camelCase fields.
    """
    payload = request.get_json(silent=True)
    try:
        job = job_service.update_job(job_id, payload)
    except JobNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update job")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(job.to_dict())


@jobs_bp.delete("/<int:job_id>")
def delete_job_route(job_id: int):
    if not job_service.delete_job(job_id):
        return jsonify({"error": "Job not found"}), 404
    return jsonify({"ok": True})


@jobs_bp.post("/import")
def import_jobs_route():
    """
    Upsert jobs by jobCode.

    Request body:
    {
        "jobs": [{"jobCode": "JOB-23-001", "booking": "BK1", ...}, ...]
    }

    Returns:
        200: {"added": n, "updated": n, "errors": [...]}
    """
    payload = request.get_json(silent=True) or {}
    try:
        result = job_service.import_jobs(payload.get("jobs"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to import jobs")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)
