# Overview: Flask API routes for standalone receipts.

from flask import Blueprint, request, jsonify, current_app

from ..services import receipt_service
from ..services.receipt_service import ReceiptNotFoundError
from ..validation import ValidationError


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


@receipts_bp.get("")
def list_receipts_route():
    return jsonify(receipt_service.list_receipts(doc_no=request.args.get("doc_no")))


@receipts_bp.post("")
def create_receipt_route():
    """
    Request body:
    {
        "doc_no": "NTTK00012",
        "date": "2024-01-05",       // or 05/01/2024
        "amount": 1500000,
        "customer_id": "KH001",
        "description": "Thu local charge BK123"
    }
    """
    payload = request.get_json(silent=True)
    try:
        receipt = receipt_service.create_receipt(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create receipt")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(receipt.to_dict()), 201


@receipts_bp.put("/<int:receipt_id>")
def update_receipt_route(receipt_id: int):
    payload = request.get_json(silent=True)
    try:
        receipt = receipt_service.update_receipt(receipt_id, payload)
    except ReceiptNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update receipt")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(receipt.to_dict())


@receipts_bp.delete("/<int:receipt_id>")
def delete_receipt_route(receipt_id: int):
    if not receipt_service.delete_receipt(receipt_id):
        return jsonify({"error": "Receipt not found"}), 404
    return jsonify({"ok": True})
