from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Brand(db.Model):
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Product(db.Model):
    """
    Product master data.

    PRICING:
    - price is the base price in the smallest currency unit.
    - discount is a static catalog percentage shown next to the product; it is
      NOT folded into the effective price. Time-bounded Sales are.
    - A ProductVariant.price, when set, overrides price for that variant.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_brand", "category_id", "brand_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True, index=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price = db.Column(db.Integer, nullable=False, default=0)
    discount = db.Column(db.Integer, nullable=False, default=0)

    thumbnail = db.Column(db.String(512), nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    material = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} title={self.title!r} price={self.price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "brand_id": self.brand_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "discount": self.discount,
            "thumbnail": self.thumbnail,
            "gender": self.gender,
            "material": self.material,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductVariant(db.Model):
    """
    SKU-level specialization (size/color) of a Product.

    SKU DESIGN DECISION:
    - SKUs are unique within a product, not globally:
      UniqueConstraint("product_id", "sku")
    - Lookups by SKU are always product-scoped (imports target one product).

    STOCK:
    - stock is the quantity on hand, mutated only by inventory imports and
      purchase orders, always through a single-statement increment.
    - CheckConstraint keeps it non-negative at the store level.
    """
    __tablename__ = "product_variants"
    __table_args__ = (
        db.UniqueConstraint("product_id", "sku", name="uq_product_variants_product_sku"),
        db.CheckConstraint("stock >= 0", name="ck_product_variants_stock_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=True)
    color = db.Column(db.String(64), nullable=True)

    # Override of Product.price when not NULL
    price = db.Column(db.Integer, nullable=True)
    cost_price = db.Column(db.Integer, nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product", backref=db.backref("variants", lazy=True, order_by="ProductVariant.id"))

    def __repr__(self) -> str:
        return f"<ProductVariant id={self.id} product_id={self.product_id} sku={self.sku!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "sku": self.sku,
            "size": self.size,
            "color": self.color,
            "price": self.price,
            "cost_price": self.cost_price,
            "stock": self.stock,
        }
