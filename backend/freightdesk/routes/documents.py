# Overview: Flask API routes for voucher numbers; preview, reserve and ownership lookup.

# backend/freightdesk/routes/documents.py
"""
Voucher Number API Routes

GET /next previews the number a reservation would give (stored jobs,
receipts and numbers already reserved) without reserving it. POST /reserve
hands out a number exactly once.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import document_service
from ..services.document_service import DocumentSequenceError
from ..services.job_service import load_job_records
from ..services.receipt_service import load_receipt_records


documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


def _width(value) -> int:
    if value is None or value == "":
        return current_app.config.get("DOC_NO_WIDTH", document_service.DEFAULT_DOC_WIDTH)
    width = value
    if isinstance(width, str):
        width = int(width) if width.strip().isdigit() else None
    if not isinstance(width, int) or isinstance(width, bool) or width < 1 or width > 12:
        raise DocumentSequenceError("width must be an integer between 1 and 12")
    return width


@documents_bp.get("/next")
def next_doc_no_route():
    """
    Preview the next voucher number.

    Query params:
    - prefix: "NTTK" or "UNC" (required)
    - width: zero-padding (default DOC_NO_WIDTH)
    - reserved: comma-separated numbers already chosen but not yet saved
    """
    prefix = request.args.get("prefix", "")
    reserved = [v.strip() for v in request.args.get("reserved", "").split(",") if v.strip()]
    try:
        document_service.validate_prefix(prefix)
        width = _width(request.args.get("width"))
        doc_no = document_service.preview_next_doc_no(prefix, width, reserved)
    except DocumentSequenceError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"doc_no": doc_no, "prefix": prefix, "reserved": False})


@documents_bp.post("/reserve")
def reserve_doc_no_route():
    """
    Reserve a voucher number.

    Request body:
    {
        "prefix": "UNC",
        "width": 5,             // optional
        "reserved": ["UNC00012"] // optional
    }

    Returns:
        201: {"doc_no": "UNC00013", "prefix": "UNC", "reserved": true}
    """
    payload = request.get_json(silent=True) or {}
    prefix = payload.get("prefix") or ""
    reserved = payload.get("reserved") or []
    if not isinstance(reserved, list):
        return jsonify({"error": "reserved must be a list"}), 400
    try:
        width = _width(payload.get("width"))
        doc_no = document_service.reserve_doc_no(prefix, width, [str(v) for v in reserved])
    except DocumentSequenceError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to reserve voucher number")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"doc_no": doc_no, "prefix": prefix, "reserved": True}), 201


@documents_bp.get("/<doc_no>/owners")
def doc_no_owners_route(doc_no: str):
    owners = document_service.find_doc_no_owners(load_job_records(), doc_no, load_receipt_records())
    return jsonify({"doc_no": doc_no, "owners": owners, "count": len(owners)})
