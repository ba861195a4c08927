# Overview: Flask API routes for checkout and orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import service_errors, clamp_paging
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@service_errors("An error occurred while retrieving orders")
def list_orders_route():
    """
    List orders.

    Query parameters:
    - status: Filter by status
    - user_id: Filter by user
    - limit: Maximum results (default: 100)
    - offset: Pagination offset (default: 0)

    Returns:
        {items: Order[], count: int, limit: int, offset: int}
    """
    limit, offset = clamp_paging(
        request.args.get("limit", 100, type=int),
        request.args.get("offset", 0, type=int),
    )
    orders, total = order_service.list_orders(
        status=request.args.get("status"),
        user_id=request.args.get("user_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({"items": orders, "count": total, "limit": limit, "offset": offset})


@orders_bp.get("/<int:order_id>")
@service_errors("Error retrieving order")
def get_order_route(order_id: int):
    return jsonify({"order": order_service.get_order(order_id)})


@orders_bp.post("/<int:user_id>/checkout")
@service_errors("Checkout failed")
def checkout_route(user_id: int):
    """
    Create an order from the user's cart.

    Request body:
    {
        "address": "...",  // required
        "note": "..."      // optional
    }
    """
    data = request.get_json(silent=True) or {}
    order = order_service.create_from_cart(user_id, data.get("address"), data.get("note"))
    return jsonify({"order": order}), 201


@orders_bp.patch("/<int:order_id>/status")
@service_errors("Update order status failed")
def update_status_route(order_id: int):
    data = request.get_json(silent=True) or {}
    order = order_service.update_status(order_id, data.get("status"))
    return jsonify({"order": order})


@orders_bp.delete("/<int:order_id>")
@service_errors("Cancel order failed")
def cancel_order_route(order_id: int):
    order = order_service.cancel_order(order_id)
    return jsonify({"order": order})
