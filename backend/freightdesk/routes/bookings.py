# Overview: Flask API routes for booking summaries and the shared cost breakdown.

from flask import Blueprint, request, jsonify, current_app

from ..services import booking_service
from ..services.booking_service import BookingNotFoundError
from ..validation import ValidationError


bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")


@bookings_bp.get("")
def list_bookings_route():
    """One summary per booking. Query params: month, year."""
    summaries = booking_service.list_bookings(
        month=request.args.get("month"),
        year=request.args.get("year", type=int),
    )
    return jsonify({
        "items": [s.to_dict() for s in summaries],
        "count": len(summaries),
    })


@bookings_bp.get("/<booking_id>")
def get_booking_route(booking_id: str):
    summary = booking_service.get_booking_summary(booking_id)
    if summary is None:
        return jsonify({"error": f"Booking {booking_id} not found"}), 404
    return jsonify(summary.to_dict())


@bookings_bp.put("/<booking_id>/cost-details")
def save_cost_details_route(booking_id: str):
    """
    Replace the booking's cost breakdown.

    Request body:
    {
        "localCharge": {"invoice": "INV1", "date": "2024-01-05", "net": 1000, "vat": 80},
        "additionalLocalCharges": [...],
        "extensionCosts": [...],
        "deposits": [{"id": "d1", "amount": 2000000, "dateOut": "", "dateIn": ""}]
    }
    """
    payload = request.get_json(silent=True)
    try:
        summary = booking_service.save_cost_details(booking_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except BookingNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to save booking cost details")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(summary.to_dict())
