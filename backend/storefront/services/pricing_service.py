# Overview: Service-layer price resolution for product variants.

"""
Pricing Service

effective_price(variant) =
    base      = variant.price if set, else product.price
    discount  = MAX(sale.discount) over sales covering the product whose
                window contains now (start_date <= now <= end_date), else 0
    discount > 0 -> round(base - base * discount / 100), floored at 0
    otherwise    -> round(base)

Overlapping sales never stack: only the single best discount applies.
Rounding is half away from zero to an integer minor unit.
Product.discount (static catalog badge) does not participate.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Product, ProductVariant, Sale, SaleDetail
from ..validation import round_half_away
from storefront.time_utils import utcnow
from .catalog_service import VariantNotFoundError


def apply_discount(base_price, discount: int) -> int:
    base = Decimal(str(base_price))
    if discount and discount > 0:
        discounted = round_half_away(base - base * Decimal(discount) / Decimal(100))
        return max(discounted, 0)
    return round_half_away(base)


def get_active_discount(product_id: int, at: datetime | None = None) -> int:
    """Best discount percent across sales active at `at` (defaults to now)."""
    now = at or utcnow()
    best = (
        db.session.query(func.max(Sale.discount))
        .join(SaleDetail, SaleDetail.sale_id == Sale.id)
        .filter(
            SaleDetail.product_id == product_id,
            Sale.start_date <= now,
            Sale.end_date >= now,
            Sale.discount > 0,
        )
        .scalar()
    )
    if best is None or best <= 0:
        return 0
    return int(best)


def _load_base(variant_id: int) -> tuple[int, int]:
    row = (
        db.session.query(ProductVariant.price, Product.price, Product.id)
        .join(Product, ProductVariant.product_id == Product.id)
        .filter(ProductVariant.id == variant_id)
        .first()
    )
    if row is None:
        raise VariantNotFoundError(variant_id)
    variant_price, product_price, product_id = row
    base = variant_price if variant_price is not None else product_price
    return (base or 0), product_id


def resolve_effective_price(variant_id: int, *, at: datetime | None = None) -> int:
    """
    Current effective price of a variant in minor units.

    Raises:
        VariantNotFoundError: If the variant does not exist
    """
    base, product_id = _load_base(variant_id)
    return apply_discount(base, get_active_discount(product_id, at))


def quote_variant_price(variant_id: int, *, at: datetime | None = None) -> dict:
    base, product_id = _load_base(variant_id)
    discount = get_active_discount(product_id, at)
    return {
        "variant_id": variant_id,
        "product_id": product_id,
        "base_price": round_half_away(base),
        "active_discount": discount,
        "effective_price": apply_discount(base, discount),
    }
