from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseOrder(db.Model):
    """
    Supplier restocking document.

    The header row is written first so every audit record created while
    applying the order can reference purchase_order_id.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    records = db.relationship(
        "InventoryImportRecord",
        backref="purchase_order",
        lazy=True,
        order_by="InventoryImportRecord.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} supplier_id={self.supplier_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryImportRecord(db.Model):
    """
    Append-only audit log of stock additions.

    Written by both the row importer (source_file set, purchase_order_id NULL)
    and the purchase order engine (supplier_id and purchase_order_id set).
    Rows are never updated or deleted.

    sku/size/color are copied at write time so the record stays readable even
    if the variant is later edited.
    """
    __tablename__ = "inventory_imports"
    __table_args__ = (
        db.Index("ix_inventory_imports_variant_created", "variant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=True)
    color = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    cost_price = db.Column(db.Integer, nullable=True)
    selling_price = db.Column(db.Integer, nullable=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=True, index=True)
    source_file = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "sku": self.sku,
            "size": self.size,
            "color": self.color,
            "quantity": self.quantity,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "supplier_id": self.supplier_id,
            "purchase_order_id": self.purchase_order_id,
            "source_file": self.source_file,
            "created_at": to_utc_z(self.created_at),
        }
