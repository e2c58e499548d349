# Overview: Flask API routes for the customer and shipping-line registries.

from flask import Blueprint, request, jsonify, current_app

from ..models import Customer, ShippingLine
from ..services import registry_service
from ..services.registry_service import RegistryNotFoundError
from ..validation import ValidationError, ConflictError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")
lines_bp = Blueprint("lines", __name__, url_prefix="/api/lines")


def _register_crud(bp: Blueprint, model) -> None:
    label = model.__name__

    @bp.get("")
    def list_route():
        return jsonify(registry_service.list_entries(model, search=request.args.get("q")))

    @bp.post("")
    def create_route():
        try:
            entry = registry_service.create_entry(model, request.get_json(silent=True))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        except Exception:
            current_app.logger.exception("Failed to create %s", label)
            return jsonify({"error": "Internal server error"}), 500
        return jsonify(entry.to_dict()), 201

    @bp.put("/<int:entry_id>")
    def update_route(entry_id: int):
        try:
            entry = registry_service.update_entry(model, entry_id, request.get_json(silent=True))
        except RegistryNotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        except Exception:
            current_app.logger.exception("Failed to update %s", label)
            return jsonify({"error": "Internal server error"}), 500
        return jsonify(entry.to_dict())

    @bp.delete("/<int:entry_id>")
    def delete_route(entry_id: int):
        if not registry_service.delete_entry(model, entry_id):
            return jsonify({"error": f"{label} not found"}), 404
        return jsonify({"ok": True})


_register_crud(customers_bp, Customer)
_register_crud(lines_bp, ShippingLine)
