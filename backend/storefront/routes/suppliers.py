# Overview: Flask API routes for suppliers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import service_errors
from ..services import supplier_service


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@service_errors("Failed to load suppliers")
def list_suppliers_route():
    return jsonify({"items": [s.to_dict() for s in supplier_service.list_suppliers()]})


@suppliers_bp.post("")
@service_errors("Failed to create supplier")
def create_supplier_route():
    data = request.get_json(silent=True) or {}
    supplier = supplier_service.create_supplier(name=data.get("name"), address=data.get("address"))
    return jsonify({"supplier": supplier.to_dict()}), 201
