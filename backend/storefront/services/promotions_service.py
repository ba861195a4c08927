# Overview: Service-layer administration of time-bounded sales and the products they cover.

"""
Promotions Service

A Sale discounts every covered product by a whole percent while
start_date <= now <= end_date. Pricing reads sales directly; nothing here
recomputes cart snapshots or order prices.

- Dates are accepted as datetimes or ISO-8601 strings and stored UTC-naive.
- discount must lie in 0..100; end_date may not precede start_date.
- product_ids, when given, REPLACES the covered set (empty list clears it).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Sale, SaleDetail
from ..validation import NotFoundError, ValidationError, to_int, to_text
from storefront.time_utils import normalize_datetime, parse_iso_datetime, utcnow
from .catalog_service import ProductNotFoundError
from .concurrency import atomic


class SaleNotFoundError(NotFoundError):
    def __init__(self, sale_id):
        super().__init__("Sale not found", details={"sale_id": sale_id})


@dataclass
class SaleUpdate:
    """Optional-field write set for a Sale. product_ids, when given, replaces the covered set."""
    title: str | None = None
    content: str | None = None
    banner_url: str | None = None
    discount: Any = None
    start_date: Any = None
    end_date: Any = None
    product_ids: list | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SaleUpdate":
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})


def _parse_when(value, field: str) -> datetime:
    if isinstance(value, datetime):
        return normalize_datetime(value)
    parsed = parse_iso_datetime(value) if isinstance(value, str) else None
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    return parsed


def _parse_discount(value) -> int:
    if value is None or value == "":
        return 0
    discount = to_int(value)
    if discount is None or discount < 0 or discount > 100:
        raise ValidationError("discount must be an integer percent between 0 and 100")
    return discount


def _normalize_product_ids(product_ids) -> list[int]:
    unique = []
    for raw in product_ids or []:
        pid = to_int(raw)
        if pid and pid > 0 and pid not in unique:
            unique.append(pid)

    if unique:
        existing = {
            row[0] for row in db.session.query(Product.id).filter(Product.id.in_(unique)).all()
        }
        for pid in unique:
            if pid not in existing:
                raise ProductNotFoundError(pid)
    return unique


def _replace_details(sale: Sale, product_ids: list[int]) -> None:
    sale.details.clear()
    db.session.flush()
    for pid in product_ids:
        sale.details.append(SaleDetail(product_id=pid))


def create_sale(
    *,
    title,
    start_date,
    end_date,
    discount=0,
    content=None,
    banner_url=None,
    product_ids=None,
) -> Sale:
    title = to_text(title)
    if not title:
        raise ValidationError("Title is required")
    if start_date in (None, "") or end_date in (None, ""):
        raise ValidationError("Start date and end date are required")

    start = _parse_when(start_date, "start_date")
    end = _parse_when(end_date, "end_date")
    if end < start:
        raise ValidationError("end_date must not be before start_date")

    with atomic():
        sale = Sale(
            title=title,
            content=content,
            banner_url=banner_url,
            discount=_parse_discount(discount),
            start_date=start,
            end_date=end,
        )
        db.session.add(sale)
        db.session.flush()
        _replace_details(sale, _normalize_product_ids(product_ids))
    return sale


def update_sale(sale_id: int, changes: SaleUpdate) -> Sale:
    sale = get_sale(sale_id)

    with atomic():
        if changes.title is not None:
            title = to_text(changes.title)
            if not title:
                raise ValidationError("Title cannot be blank")
            sale.title = title
        if changes.content is not None:
            sale.content = changes.content
        if changes.banner_url is not None:
            sale.banner_url = changes.banner_url
        if changes.discount is not None:
            sale.discount = _parse_discount(changes.discount)
        if changes.start_date is not None:
            sale.start_date = _parse_when(changes.start_date, "start_date")
        if changes.end_date is not None:
            sale.end_date = _parse_when(changes.end_date, "end_date")
        if sale.end_date < sale.start_date:
            raise ValidationError("end_date must not be before start_date")
        if changes.product_ids is not None:
            _replace_details(sale, _normalize_product_ids(changes.product_ids))
    return sale


def delete_sale(sale_id: int) -> None:
    sale = get_sale(sale_id)
    with atomic():
        db.session.delete(sale)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError(sale_id)
    return sale


def list_sales(*, active_only: bool = False) -> list[dict]:
    q = (
        db.session.query(Sale, func.count(SaleDetail.id))
        .outerjoin(SaleDetail, SaleDetail.sale_id == Sale.id)
        .group_by(Sale.id)
    )
    if active_only:
        now = utcnow()
        q = q.filter(Sale.start_date <= now, Sale.end_date >= now)

    result = []
    for sale, product_count in q.order_by(Sale.start_date.desc()).all():
        data = sale.to_dict()
        data["product_count"] = int(product_count or 0)
        result.append(data)
    return result
