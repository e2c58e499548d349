# Overview: Flask API routes for debt, control and profit reports.

from flask import Blueprint, jsonify, request, current_app

from ..services import report_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("")
def report_types_route():
    return jsonify({"report_types": list(report_service.REPORT_TYPES)})


@reports_bp.get("/profit/<period>")
def profit_report_route(period: str):
    """
    Profit rollups.

    Query params:
    - year: required for /profit/monthly
    - exchange_rate: VND per USD for /profit/yearly (default EXCHANGE_RATE)
    """
    year = request.args.get("year", type=int)
    exchange_rate = request.args.get("exchange_rate", type=float)

    try:
        report = report_service.profit_report(period, year=year, exchange_rate=exchange_rate)
        return jsonify(report), 200
    except report_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/<report_type>")
def debt_report_route(report_type: str):
    """
    One debt or control report, e.g. /api/reports/customer_debt?q=acme

    Query params:
    - q: search on job code, customer name, line or booking
    - customer: name fragment for MISSING_HBL
    - bank: receiving bank for BANK_PAYMENT
    """
    search = (request.args.get("q") or "").strip() or None
    params = {
        "customer": request.args.get("customer"),
        "bank": request.args.get("bank"),
    }

    try:
        report = report_service.build_report(report_type, search, params)
        return jsonify(report), 200
    except report_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build report %s", report_type)
        return jsonify({"error": "Internal server error"}), 500
