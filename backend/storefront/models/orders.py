from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


ORDER_STATUSES = ("pending", "paid", "shipped", "completed", "cancelled")


class Order(db.Model):
    """
    Customer order created from a cart at checkout.

    Only status changes after creation; total_price and items are frozen.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)

    address = db.Column(db.String(512), nullable=False)
    note = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    total_price = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship("OrderItem", backref="order", lazy=True, order_by="OrderItem.id")

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} status={self.status!r} total={self.total_price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "address": self.address,
            "note": self.note,
            "status": self.status,
            "total_price": self.total_price,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    # Copied from CartItem.price_snapshot, never recomputed
    price = db.Column(db.Integer, nullable=False)

    variant = db.relationship("ProductVariant")

    def to_dict(self) -> dict:
        variant = self.variant
        product = variant.product if variant else None
        return {
            "id": self.id,
            "order_id": self.order_id,
            "variant_id": self.variant_id,
            "product_id": variant.product_id if variant else None,
            "product_title": product.title if product else None,
            "product_thumbnail": product.thumbnail if product else None,
            "sku": variant.sku if variant else None,
            "size": variant.size if variant else None,
            "color": variant.color if variant else None,
            "quantity": self.quantity,
            "price": self.price,
            "subtotal": self.price * self.quantity,
        }
