# Overview: Flask API routes for inventory row imports, the import audit trail and price quotes.

from flask import Blueprint, request, jsonify

from ..decorators import service_errors, clamp_paging
from ..services import inventory_import_service, pricing_service
from ..validation import ValidationError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/imports")
@service_errors("Inventory import failed")
def import_rows_route():
    """
    Import normalized inventory rows.

    Request body:
    {
        "product_id": 7,             // default product for rows without one
        "source_file": "stock.xlsx", // optional, kept on the audit trail
        "supplier_id": 2,            // optional
        "rows": [
            {"sku": "TS-RED-M", "quantity": 10, "size": "M", "color": "Red",
             "cost_price": 50000, "selling_price": 120000}
        ]
    }
    """
    data = request.get_json(silent=True) or {}
    rows = data.get("rows")
    if not isinstance(rows, list):
        raise ValidationError("rows must be a list")

    summary = inventory_import_service.import_inventory(
        rows,
        default_product_id=data.get("product_id"),
        source_file=data.get("source_file"),
        supplier_id=data.get("supplier_id"),
    )
    return jsonify({"import": summary}), 201


@inventory_bp.get("/imports")
@service_errors("Failed to load inventory imports")
def list_import_records_route():
    limit, offset = clamp_paging(
        request.args.get("limit", 100, type=int),
        request.args.get("offset", 0, type=int),
    )
    records, total = inventory_import_service.list_import_records(
        product_id=request.args.get("product_id", type=int),
        variant_id=request.args.get("variant_id", type=int),
        purchase_order_id=request.args.get("purchase_order_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [r.to_dict() for r in records],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@inventory_bp.get("/variants/<int:variant_id>/price")
@service_errors("Failed to resolve price")
def variant_price_route(variant_id: int):
    return jsonify({"price": pricing_service.quote_variant_price(variant_id)})
