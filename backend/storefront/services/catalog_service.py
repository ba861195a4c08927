# Overview: Service-layer operations for products and variants used by the commerce engine.

"""
Catalog Service

Product/variant lookups shared by pricing, carts, imports and purchase
orders, plus the variant write primitives those flows rely on.

PARTIAL UPDATES:
Variant edits are described by a VariantUpdate where every field is
optional. Only fields that are set end up in the UPDATE statement, so an
import row that omits color never clears an existing color.

STOCK:
Stock only ever changes through increment_stock(), a single
UPDATE ... SET stock = stock + :n statement. The value read by the caller is
never written back, so two concurrent restocks cannot lose an update.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from sqlalchemy import update as sa_update

from ..extensions import db
from ..models import Product, ProductVariant
from ..validation import NotFoundError, ValidationError, to_text
from .concurrency import lock_for_update


class ProductNotFoundError(NotFoundError):
    """Raised when a product id does not resolve."""

    def __init__(self, product_id):
        super().__init__(f"Product not found: {product_id}", details={"product_id": product_id})


class VariantNotFoundError(NotFoundError):
    """Raised when a variant id does not resolve."""

    def __init__(self, variant_id):
        super().__init__(f"Variant not found: {variant_id}", details={"variant_id": variant_id})


@dataclass
class VariantUpdate:
    """Optional-field write set for a ProductVariant. None means 'leave unchanged'."""
    size: str | None = None
    color: str | None = None
    price: int | None = None
    cost_price: int | None = None

    def as_values(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def __bool__(self) -> bool:
        return bool(self.as_values())


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def get_variant(variant_id: int, *, lock: bool = False) -> ProductVariant:
    query = db.session.query(ProductVariant).filter(ProductVariant.id == variant_id)
    if lock:
        query = lock_for_update(query)
    variant = query.first()
    if variant is None:
        raise VariantNotFoundError(variant_id)
    return variant


def find_variant_by_sku(product_id: int, sku: str, *, lock: bool = False) -> ProductVariant | None:
    """SKU lookup is product-scoped."""
    query = db.session.query(ProductVariant).filter(
        ProductVariant.product_id == product_id,
        ProductVariant.sku == sku,
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def create_variant(
    *,
    product_id: int,
    sku: str,
    size: str | None = None,
    color: str | None = None,
    price: int | None = None,
    cost_price: int | None = None,
    stock: int = 0,
) -> ProductVariant:
    """
    Add a variant to a product inside the caller's transaction (flush only).

    Raises:
        ProductNotFoundError: If the product does not exist
        ValidationError: If sku is blank or stock is negative
    """
    sku = to_text(sku)
    if not sku:
        raise ValidationError("sku is required")
    if stock < 0:
        raise ValidationError("stock cannot be negative")

    get_product(product_id)

    variant = ProductVariant(
        product_id=product_id,
        sku=sku,
        size=size,
        color=color,
        price=price,
        cost_price=cost_price,
        stock=stock,
    )
    db.session.add(variant)
    db.session.flush()
    return variant


def increment_stock(variant_id: int, quantity: int, changes: VariantUpdate | None = None) -> ProductVariant:
    """
    Atomically add quantity to a variant's stock and apply a partial update.

    Runs inside the caller's transaction; returns the refreshed variant.

    Raises:
        VariantNotFoundError: If no row was updated
    """
    values = {"stock": ProductVariant.stock + quantity}
    if changes:
        values.update(changes.as_values())

    result = db.session.execute(
        sa_update(ProductVariant)
        .where(ProductVariant.id == variant_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise VariantNotFoundError(variant_id)

    return db.session.get(ProductVariant, variant_id, populate_existing=True)
