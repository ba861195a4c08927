# Overview: Flask API routes for time-bounded sales (promotions); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import service_errors
from ..services import promotions_service
from ..services.promotions_service import SaleUpdate


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@service_errors("Failed to load sales")
def list_sales_route():
    active_only = request.args.get("active", "false").lower() == "true"
    return jsonify({"items": promotions_service.list_sales(active_only=active_only)})


@sales_bp.get("/<int:sale_id>")
@service_errors("Failed to load sale")
def get_sale_route(sale_id: int):
    return jsonify({"sale": promotions_service.get_sale(sale_id).to_dict()})


@sales_bp.post("")
@service_errors("Failed to create sale")
def create_sale_route():
    """
    Request body:
    {
        "title": "Summer",                     // required
        "discount": 20,                        // percent
        "start_date": "2026-06-01T00:00:00Z",  // required
        "end_date": "2026-06-30T23:59:59Z",    // required
        "product_ids": [1, 2, 3]
    }
    """
    data = request.get_json(silent=True) or {}
    sale = promotions_service.create_sale(
        title=data.get("title"),
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
        discount=data.get("discount", 0),
        content=data.get("content"),
        banner_url=data.get("banner_url"),
        product_ids=data.get("product_ids"),
    )
    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.patch("/<int:sale_id>")
@service_errors("Failed to update sale")
def update_sale_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    sale = promotions_service.update_sale(sale_id, SaleUpdate.from_mapping(data))
    return jsonify({"sale": sale.to_dict()})


@sales_bp.delete("/<int:sale_id>")
@service_errors("Failed to delete sale")
def delete_sale_route(sale_id: int):
    promotions_service.delete_sale(sale_id)
    return jsonify({"status": "ok"})
