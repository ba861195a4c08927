# Overview: Flask API routes for shopping carts; parses input and returns JSON responses.

"""
Cart Routes

The HTTP layer upstream has already authenticated the caller; user_id in
the path is trusted as-is.
"""

from flask import Blueprint, request, jsonify

from ..decorators import service_errors
from ..services import cart_service


carts_bp = Blueprint("carts", __name__, url_prefix="/api/carts")


@carts_bp.get("/<int:user_id>")
@service_errors("Error retrieving cart")
def get_cart_route(user_id: int):
    return jsonify({"cart": cart_service.get_cart(user_id)})


@carts_bp.post("/<int:user_id>/items")
@service_errors("Add to cart failed")
def add_item_route(user_id: int):
    """
    Add a variant to the cart.

    Request body:
    {
        "variant_id": 12,  // required
        "quantity": 2      // required, positive
    }
    """
    data = request.get_json(silent=True) or {}
    cart = cart_service.add_item(user_id, data.get("variant_id"), data.get("quantity"))
    return jsonify({"cart": cart}), 201


@carts_bp.patch("/<int:user_id>/items/<int:cart_item_id>")
@service_errors("Update cart item failed")
def update_item_route(user_id: int, cart_item_id: int):
    data = request.get_json(silent=True) or {}
    cart = cart_service.update_item(user_id, cart_item_id, data.get("quantity"))
    return jsonify({"cart": cart})


@carts_bp.delete("/<int:user_id>/items/<int:cart_item_id>")
@service_errors("Delete cart item failed")
def remove_item_route(user_id: int, cart_item_id: int):
    cart_service.remove_item(user_id, cart_item_id)
    return jsonify({"status": "ok"})


@carts_bp.delete("/<int:user_id>")
@service_errors("Clear cart failed")
def clear_cart_route(user_id: int):
    removed = cart_service.clear_cart(user_id)
    return jsonify({"status": "ok", "removed": removed})
