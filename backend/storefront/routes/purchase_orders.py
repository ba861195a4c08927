# Overview: Flask API routes for supplier purchase orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import service_errors, clamp_paging
from ..services import purchase_order_service


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.get("")
@service_errors("Failed to load purchase orders")
def list_purchase_orders_route():
    limit, offset = clamp_paging(
        request.args.get("limit", 25, type=int),
        request.args.get("offset", 0, type=int),
        default_limit=25,
    )
    orders, total = purchase_order_service.list_purchase_orders(limit=limit, offset=offset)
    return jsonify({"items": orders, "count": total, "limit": limit, "offset": offset})


@purchase_orders_bp.get("/<int:purchase_order_id>")
@service_errors("Failed to load purchase order")
def get_purchase_order_route(purchase_order_id: int):
    return jsonify({"purchase_order": purchase_order_service.get_purchase_order(purchase_order_id)})


@purchase_orders_bp.post("")
@service_errors("Failed to create purchase order")
def create_purchase_order_route():
    """
    Create a purchase order and restock its variants.

    Request body:
    {
        "supplier_id": 1,  // required
        "note": "...",     // optional
        "items": [         // required, at least one
            {"variant_id": 3, "quantity": 5, "cost_price": 40000, "selling_price": 80000}
        ]
    }
    """
    data = request.get_json(silent=True) or {}
    items = data.get("items")
    order = purchase_order_service.create_purchase_order(
        supplier_id=data.get("supplier_id"),
        note=data.get("note"),
        items=items if isinstance(items, list) else [],
    )
    return jsonify({"purchase_order": order}), 201
