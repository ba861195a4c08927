# Overview: Service-layer operations for checkout and orders; encapsulates business logic and database work.

"""
Order Service

CHECKOUT (create_from_cart) is one unit of work:
1. Validate address (before any store access)
2. Read and lock the user's cart lines; empty cart is rejected
3. total_price = round(SUM(price_snapshot * quantity))
4. Insert Order with status 'pending'
5. Insert one OrderItem per cart line, price = price_snapshot verbatim
6. Delete the user's cart lines
7. Commit

Either the order, its items and the emptied cart all exist, or nothing
changed. Checkout does not decrement variant stock.

STATUS:
- update_status() accepts any member of ORDER_STATUSES and overwrites the
  field; there is no transition table.
- cancel_order() is the one guarded transition: pending -> cancelled only.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import CartItem, Order, OrderItem, ORDER_STATUSES
from ..validation import BusinessRuleError, NotFoundError, StateError, ValidationError, round_half_away, to_text
from .concurrency import atomic, lock_for_update, run_with_retry


STATUS_PENDING = "pending"
STATUS_CANCELLED = "cancelled"


class OrderNotFoundError(NotFoundError):
    """Raised when an order is not found."""

    def __init__(self, order_id):
        super().__init__("Order not found", details={"order_id": order_id})


class EmptyCartError(BusinessRuleError):
    """Raised when checking out a cart with no lines."""

    def __init__(self):
        super().__init__("Cart is empty")


class InvalidStatusError(ValidationError):
    """Raised when a status value is not a recognized order status."""

    def __init__(self, status):
        super().__init__(
            f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}",
            details={"status": status},
        )


class OrderStateError(StateError):
    """Raised when an operation is invalid for the order's current status."""
    pass


def _order_with_items(order: Order) -> dict:
    result = order.to_dict()
    result["items"] = [item.to_dict() for item in order.items]
    result["total_quantity"] = sum(item.quantity for item in order.items)
    return result


def _copy_cart_lines(order: Order, lines: list[CartItem]) -> None:
    for line in lines:
        db.session.add(OrderItem(
            order_id=order.id,
            variant_id=line.variant_id,
            quantity=line.quantity,
            price=line.price_snapshot,
        ))
    db.session.flush()


def create_from_cart(user_id: int, address, note=None) -> dict:
    """
    Convert the user's cart into a pending order.

    Returns:
        Order dict with items

    Raises:
        ValidationError: If address is missing or blank
        EmptyCartError: If the cart has no lines
    """
    if not isinstance(address, str) or not address.strip():
        raise ValidationError("Address is required")
    address = address.strip()
    note = to_text(note)

    def _op():
        with atomic():
            lines = lock_for_update(
                db.session.query(CartItem)
                .filter(CartItem.user_id == user_id)
                .order_by(CartItem.id)
            ).all()
            if not lines:
                raise EmptyCartError()

            total = round_half_away(sum(line.price_snapshot * line.quantity for line in lines))

            order = Order(
                user_id=user_id,
                address=address,
                note=note,
                status=STATUS_PENDING,
                total_price=total,
            )
            db.session.add(order)
            db.session.flush()

            _copy_cart_lines(order, lines)

            db.session.query(CartItem).filter(
                CartItem.user_id == user_id
            ).delete(synchronize_session=False)

            return order.id

    order_id = run_with_retry(_op)
    current_app.logger.info("Checkout created order %s for user %s", order_id, user_id)
    return get_order(order_id)


def get_order(order_id: int) -> dict:
    """
    Raises:
        OrderNotFoundError: If not found
    """
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return _order_with_items(order)


def list_orders(
    *,
    status: str | None = None,
    user_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[dict], int]:
    """
    List orders newest first.

    Returns:
        Tuple of (list of order dicts, total count)
    """
    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if user_id:
        query = query.filter(Order.user_id == user_id)

    total = query.count()
    orders = query.order_by(Order.id.desc()).offset(offset).limit(limit).all()
    return [o.to_dict() for o in orders], total


def update_status(order_id: int, status) -> dict:
    """
    Overwrite the order's status with any recognized value.

    Raises:
        InvalidStatusError: If status is not in ORDER_STATUSES
        OrderNotFoundError: If the order does not exist
    """
    if status not in ORDER_STATUSES:
        raise InvalidStatusError(status)

    def _op():
        with atomic():
            order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
            if order is None:
                raise OrderNotFoundError(order_id)
            order.status = status

    run_with_retry(_op)
    return get_order(order_id)


def cancel_order(order_id: int) -> dict:
    """
    Cancel a pending order.

    Raises:
        OrderNotFoundError: If the order does not exist
        OrderStateError: If the order is not pending
    """
    def _op():
        with atomic():
            order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.status != STATUS_PENDING:
                raise OrderStateError(
                    "Only pending orders can be cancelled",
                    details={"order_id": order_id, "status": order.status},
                )
            order.status = STATUS_CANCELLED

    run_with_retry(_op)
    current_app.logger.info("Order %s cancelled", order_id)
    return get_order(order_id)
