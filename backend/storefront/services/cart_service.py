# Overview: Service-layer operations for shopping carts; encapsulates business logic and database work.

"""
Cart Service

LIFECYCLE of a CartItem:
1. Created on the first add of a variant for a user, with price_snapshot
   resolved once from the pricing service.
2. Quantity grows on repeated adds; price_snapshot never changes.
3. Deleted when quantity is set to 0 or below, on explicit removal, on
   clear, or by a successful checkout.

CONCURRENCY:
- (user_id, variant_id) is unique in the store.
- add_item first tries a single-statement quantity increment; only when no
  row exists does it resolve a price and insert. If a concurrent request
  inserted the same line in between, the unique constraint rejects our
  insert inside a savepoint and we fall back to the increment.

Cart operations never touch variant stock.
"""

from __future__ import annotations

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CartItem
from ..validation import NotFoundError, ValidationError, require_positive_int, to_int
from .concurrency import atomic, run_with_retry
from .pricing_service import resolve_effective_price


class CartItemNotFoundError(NotFoundError):
    """Raised when a cart item does not exist for the requesting user."""

    def __init__(self, cart_item_id):
        super().__init__("Cart item not found", details={"cart_item_id": cart_item_id})


def _cart_lines(user_id: int) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id)
        .all()
    )


def _increment_existing(user_id: int, variant_id: int, quantity: int) -> bool:
    result = db.session.execute(
        sa_update(CartItem)
        .where(CartItem.user_id == user_id, CartItem.variant_id == variant_id)
        .values(quantity=CartItem.quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


def get_cart(user_id: int) -> dict:
    """Cart contents with per-line subtotals and totals based on snapshots."""
    lines = _cart_lines(user_id)
    items = [line.to_dict() for line in lines]
    return {
        "user_id": user_id,
        "items": items,
        "total_quantity": sum(line.quantity for line in lines),
        "total_price": sum(line.price_snapshot * line.quantity for line in lines),
    }


def add_item(user_id: int, variant_id, quantity) -> dict:
    """
    Add a variant to the user's cart, merging with an existing line.

    Returns:
        Updated cart dict

    Raises:
        ValidationError: If variant_id or quantity is not a positive integer
        VariantNotFoundError: If the variant cannot be priced
    """
    variant_id = to_int(variant_id)
    if variant_id is None:
        raise ValidationError("variant_id must be an integer")
    quantity = require_positive_int(quantity, "quantity")

    def _op():
        with atomic():
            if _increment_existing(user_id, variant_id, quantity):
                return

            price_snapshot = resolve_effective_price(variant_id)
            try:
                with db.session.begin_nested():
                    db.session.add(CartItem(
                        user_id=user_id,
                        variant_id=variant_id,
                        quantity=quantity,
                        price_snapshot=price_snapshot,
                    ))
            except IntegrityError:
                # Lost the first-add race; the other line already has a snapshot
                if not _increment_existing(user_id, variant_id, quantity):
                    raise

    run_with_retry(_op)
    return get_cart(user_id)


def update_item(user_id: int, cart_item_id: int, quantity) -> dict:
    """
    Set a line's quantity; zero or below removes the line.

    Raises:
        ValidationError: If quantity is not an integer
        CartItemNotFoundError: If the item is not in this user's cart
    """
    quantity = to_int(quantity)
    if quantity is None:
        raise ValidationError("quantity must be an integer")

    def _op():
        with atomic():
            line = (
                db.session.query(CartItem)
                .filter(CartItem.id == cart_item_id, CartItem.user_id == user_id)
                .first()
            )
            if line is None:
                raise CartItemNotFoundError(cart_item_id)

            if quantity <= 0:
                db.session.delete(line)
            else:
                line.quantity = quantity

    run_with_retry(_op)
    return get_cart(user_id)


def remove_item(user_id: int, cart_item_id: int) -> None:
    """
    Raises:
        CartItemNotFoundError: If nothing was deleted
    """
    def _op():
        with atomic():
            deleted = (
                db.session.query(CartItem)
                .filter(CartItem.id == cart_item_id, CartItem.user_id == user_id)
                .delete(synchronize_session=False)
            )
            if deleted == 0:
                raise CartItemNotFoundError(cart_item_id)

    run_with_retry(_op)


def clear_cart(user_id: int) -> int:
    """Delete every line in the user's cart. Returns the number of lines removed."""
    def _op():
        with atomic():
            return (
                db.session.query(CartItem)
                .filter(CartItem.user_id == user_id)
                .delete(synchronize_session=False)
            )

    return run_with_retry(_op)
