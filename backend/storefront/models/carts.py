from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class CartItem(db.Model):
    """
    One line in a user's cart.

    IMMUTABLE PRICE: price_snapshot is captured once when the row is first
    inserted. Later adds of the same variant only increase quantity.

    UNIQUENESS: one row per (user_id, variant_id), enforced by the store so
    concurrent first-adds cannot duplicate the line.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "variant_id", name="uq_cart_items_user_variant"),
        db.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    price_snapshot = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    variant = db.relationship("ProductVariant")

    def __repr__(self) -> str:
        return (
            f"<CartItem id={self.id} user_id={self.user_id} variant_id={self.variant_id} "
            f"qty={self.quantity} snapshot={self.price_snapshot}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "variant_id": self.variant_id,
            "quantity": self.quantity,
            "price_snapshot": self.price_snapshot,
            "subtotal": self.price_snapshot * self.quantity,
            "created_at": to_utc_z(self.created_at),
        }
